import os

from dotenv import load_dotenv

from hostel_store.database.database import Database
from hostel_store.utils.errors import RemoteServiceError

load_dotenv()

try:
    db = Database(os.getenv('DATABASE_URL'))
    db.check_connection()
    print("Connection successful!")
    db.create_schema()
    print("Schema is up to date.")
except (ValueError, RemoteServiceError) as e:
    print(f"Error: {e}")
