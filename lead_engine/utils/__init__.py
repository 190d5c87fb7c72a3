"""Storage Layer - SQLite lead store and CSV import"""
from .database import LeadDatabase
from .importer import load_leads_from_csv

__all__ = ['LeadDatabase', 'load_leads_from_csv']
