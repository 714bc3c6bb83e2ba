"""psycopg2-backed and in-memory persistence collaborators."""
