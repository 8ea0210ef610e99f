import sys, sqlite3, os

def inspect(path, limit=10):
    if not os.path.exists(path):
        print(f"File not found: {path}")
        return 1
    con = sqlite3.connect(path)
    con.row_factory = sqlite3.Row
    try:
        cur = con.cursor()
        cur.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;")
        tables = {r[0] for r in cur.fetchall()}
        missing = {'users', 'global_stats'} - tables
        if missing:
            print("Missing tables:", ", ".join(sorted(missing)))
            return 1

        cur.execute("SELECT COUNT(*) FROM users")
        print("Users:", cur.fetchone()[0])

        print("\n-- leaderboard")
        cur.execute("SELECT username, view_count FROM users ORDER BY view_count DESC, id ASC LIMIT ?", (limit,))
        rows = cur.fetchall()
        for i, r in enumerate(rows, 1):
            print(f"{i:>3}. {r['username']}: {r['view_count']}")
        if not rows:
            print("(no rows)")

        cur.execute("SELECT COALESCE(SUM(view_count), 0) FROM users")
        user_views = cur.fetchone()[0]
        cur.execute("SELECT anonymous_views FROM global_stats WHERE id = 1")
        row = cur.fetchone()
        anon = row[0] if row else 0
        print("\nAnonymous views:", anon)
        print("Total views:", user_views + anon)
    finally:
        con.close()
    return 0

if __name__ == '__main__':
    if len(sys.argv) < 2:
        print("Usage: python3 inspect_db.py /path/to/reloadrage.db")
    else:
        sys.exit(inspect(sys.argv[1]))
