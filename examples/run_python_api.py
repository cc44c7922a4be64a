from __future__ import annotations

from reddit_query import QueryError, QueryOptions, path_query, rquery


def main() -> None:
    """Demonstrate the Python API by printing a few top posts."""
    options = QueryOptions(headers="User-Agent: reddit-query-example/0.1,Accept: application/json")

    try:
        listing = path_query("/r/python/top/.json?t=day&limit=5", options, timeout=15)
    except QueryError as exc:
        print(f"{exc.stage} failed: {exc}")
        return

    for child in listing["data"]["children"]:
        post = child["data"]
        print(f"{post['score']:>6}  {post['title']}")

    about = rquery("/r/python/about/.json", headers="User-Agent: reddit-query-example/0.1")
    print(f"r/python has {about['data']['subscribers']} subscribers")


if __name__ == "__main__":
    main()
