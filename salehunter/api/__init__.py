"""
SaleHunter HTTP API (FastAPI).
"""
