# UniStack API - university Q&A forum backend

__version__ = '1.0.0'
