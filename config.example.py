# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real keys. Put them in .env (local, gitignored).

Without BINI_SUPABASE_URL and BINI_SUPABASE_KEY the app uses the local SQLite store.
"""

ENV_VARS = {
    # App / logging
    "BINI_APP_NAME": "App display name (default: bini).",
    "BINI_LOG_LEVEL": "Console logging level (default: INFO).",
    # Remote backend (Supabase / PostgREST)
    "BINI_SUPABASE_URL": "Project URL, e.g. https://xyz.supabase.co (fallback: SUPABASE_URL).",
    "BINI_SUPABASE_KEY": "Anon/public API key (fallback: SUPABASE_ANON_KEY).",
    "BINI_SUPABASE_ACCESS_TOKEN": "Optional user JWT; the API key is sent as bearer otherwise.",
    "BINI_SUPABASE_TABLE": "Task table name (default: tasks).",
    "BINI_USER_ID": "Only fetch tasks created by or assigned to this user (empty => all rows).",
    "BINI_HTTP_TIMEOUT_SECONDS": "HTTP timeout for backend calls (default: 10).",
    # Paths (gitignored)
    "BINI_DATA_DIR": "Local data directory, also holds bini.log (default: .local/bini).",
    "BINI_TASKS_DB_PATH": "Local TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    # Calendar tuning
    "BINI_MAX_VISIBLE_TASKS": "Tasks shown per day cell before the +N label (default: 3).",
    "BINI_SWIPE_VELOCITY_THRESHOLD": "Horizontal fling speed that flips the month (default: 500).",
    "BINI_SWIPE_TRANSLATION_THRESHOLD": "Horizontal drag distance that flips the month (default: 100).",
}
