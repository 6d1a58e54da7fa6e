"""Shared test fixtures for all test modules."""

import pytest


SAMPLE_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Acme Bakery</title>
</head>
<body>
<header class="hero dark" style="color: white; background-image: url('/uploads/hero.jpg'); padding: 4rem">
<h1>Welcome</h1>
<p>Fresh bread every morning</p>
</header>
<main>
<section id="services">
<h2>Our Services</h2>
<div class="row">
<div class="col-md-4 text-center"><h4>Bread</h4><p>Baked daily</p></div>
</div>
</section>
<img src="/a.png" alt="Logo">
</main>
<footer><p>Contact us</p></footer>
</body>
</html>
"""


@pytest.fixture
def sample_page():
    """A small generated page with every kind of editable element.

    - text: h1, p, h2, div.row, div.col, h4, p, p
    - image: the logo
    - background image: the header
    - service container: #services .row
    """
    return SAMPLE_PAGE


@pytest.fixture
def distinct_texts_page():
    """Page whose text elements all have pairwise distinct content."""
    return (
        "<html><head><title>T</title></head><body>"
        "<h1>Alpha</h1><p>Bravo</p><p>Charlie</p>"
        "<ul><li>Delta</li><li>Echo</li></ul>"
        "</body></html>"
    )
