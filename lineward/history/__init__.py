"""History items, queries, a navigation cursor, and text-file and SQLite history stores."""