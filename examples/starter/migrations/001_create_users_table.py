"""Create the users table."""

from zenith.data import Database


async def up(db: Database) -> None:
    if db.driver == "sqlite":
        id_column = "INTEGER PRIMARY KEY AUTOINCREMENT"
    else:
        id_column = "SERIAL PRIMARY KEY"
    await db.execute(
        f"""
        CREATE TABLE users (
            id          {id_column},
            name        VARCHAR(255) NOT NULL,
            email       VARCHAR(255) NOT NULL UNIQUE,
            password    VARCHAR(255),
            google_id   VARCHAR(255),
            avatar      VARCHAR(255),
            role        VARCHAR(16) NOT NULL DEFAULT 'user' CHECK (role IN ('user', 'admin')),
            created_at  TEXT,
            updated_at  TEXT
        )
        """
    )


async def down(db: Database) -> None:
    await db.execute("DROP TABLE users")
