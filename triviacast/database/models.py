"""
Database table definitions for TriviaCast.

Uses SQLite with async support via aiosqlite.
"""

# SQL statements for creating tables

CREATE_TRIVIA_SETTINGS_TABLE = """
CREATE TABLE IF NOT EXISTS trivia_settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,  -- JSON encoded
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

CREATE_AUDIENCE_CHATS_TABLE = """
CREATE TABLE IF NOT EXISTS audience_chats (
    chat_id INTEGER PRIMARY KEY,
    title TEXT,
    chat_type TEXT,  -- 'private', 'group', 'supergroup', 'channel'
    joined_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_audience_chats_joined ON audience_chats(joined_at)",
]

ALL_TABLES = [
    CREATE_TRIVIA_SETTINGS_TABLE,
    CREATE_AUDIENCE_CHATS_TABLE,
]
