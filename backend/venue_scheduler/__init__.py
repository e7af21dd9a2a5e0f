# backend/venue_scheduler/__init__.py
"""
Package init: load environment variables from a .env file if present.
This runs before config.py reads os.environ.
"""

from dotenv import load_dotenv

load_dotenv()
