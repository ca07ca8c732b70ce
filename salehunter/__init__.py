"""
SaleHunter

Marketplace backend:
- Accounts with JWT access tokens and rotating refresh tokens
- One store per user, geocoded for proximity search
- Products with append-only price history, images, ratings,
  favorites and view history
"""

__version__ = "1.0.0"
