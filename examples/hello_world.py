"""
kv_cookie_store — Hello World

Cookies live in one hash per (store id, domain, path). Lookups for a
request walk every ancestor domain and path, so parent cookies are found.
"""

import asyncio
import logging

from kv_cookie_store import Cookie, CookieStoreConfig, create_cookie_store


def show(title: str, cookies: list[Cookie]) -> None:
    print(f"  {title}:")
    for cookie in cookies:
        print(f"    #{cookie.creation_index:<3} {cookie}")
    if not cookies:
        print("    (none)")


async def main():
    logging.basicConfig(level=logging.INFO)

    # ──────────────────────────────────────
    #  1. Build a store (COOKIE_STORE_* env vars
    #     pick redis or sqlite; memory otherwise)
    # ──────────────────────────────────────
    store = create_cookie_store(CookieStoreConfig.from_env())
    await store.wait_ready()
    print(f"Store id: {store.id}\n")

    # ──────────────────────────────────────
    #  2. Put a few cookies
    # ──────────────────────────────────────
    cookies = [
        Cookie(key="session", value="s3cr3t", domain="example.com", path="/", http_only=True),
        Cookie(key="cart", value="42", domain="shop.example.com", path="/checkout"),
        Cookie(key="theme", value="dark", domain="shop.example.com", path="/"),
        Cookie(key="tracker", value="x", domain="ads.other.com", path="/"),
    ]
    for cookie in cookies:
        await store.put_cookie(cookie)

    show("All cookies", await store.get_all_cookies())

    # ──────────────────────────────────────
    #  3. What would a request see?
    # ──────────────────────────────────────
    print()
    show(
        "Visible to shop.example.com/checkout/pay",
        await store.find_cookies("shop.example.com", "/checkout/pay"),
    )

    # ──────────────────────────────────────
    #  4. Update and remove
    # ──────────────────────────────────────
    print()
    old = await store.find_cookie("shop.example.com", "/checkout", "cart")
    new = Cookie(key="cart", value="43", domain="shop.example.com", path="/checkout")
    await store.update_cookie(old, new)
    await store.remove_cookies("ads.other.com", "*")
    show("After update + removing ads.other.com", await store.get_all_cookies())

    # ──────────────────────────────────────
    #  5. Clear the jar
    # ──────────────────────────────────────
    print()
    await store.remove_all_cookies()
    show("After remove_all_cookies", await store.get_all_cookies())


if __name__ == "__main__":
    asyncio.run(main())
