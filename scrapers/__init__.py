"""
Scrapers Module
"""
from .base import BaseCatalogScraper
from .leetcode_scraper import LeetCodeScraper

__all__ = [
    "BaseCatalogScraper",
    "LeetCodeScraper",
]
