"""Shopfront e-commerce API."""
