#!/usr/bin/env python3
from __future__ import annotations

import argparse

from blogadmin.infra.database import database_url, init_db, make_engine
from blogadmin.infra.posts_repo import create_post


def main() -> None:
    parser = argparse.ArgumentParser(description="Insert sample posts into the blog store.")
    parser.add_argument("-n", "--count", type=int, default=7)
    args = parser.parse_args()

    engine = make_engine()
    init_db(engine)
    for i in range(1, args.count + 1):
        create_post(
            engine,
            title=f"Sample post {i}",
            description=f"Body of sample post {i}.",
            post_id=f"{i:04d}",
        )
    print(f"OK -> {args.count} posts in {database_url()}")


if __name__ == "__main__":
    main()
