from app.scraping.parsing.html_parsers import HTMLParsingLayer

__all__ = ["HTMLParsingLayer"]
