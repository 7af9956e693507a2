"""
Persistence layer. `storage` is the process-wide DBStorage (engine pool +
scoped_session registry); it is the only shared mutable state of the app.
"""
from os import getenv

from dotenv import load_dotenv

from models.db_storage import DBStorage

load_dotenv()

storage = DBStorage(getenv("DATABASE_URL"))
storage.reload()
