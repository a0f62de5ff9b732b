#!/usr/bin/env python3
"""
Storefront E2E checks against a running server.

Run:
  python e2e_storefront.py

Optional env:
  STORE_BASE=http://localhost:8080
  TIMEOUT_SECONDS=30
  DEBUG=1
"""

from __future__ import annotations

import os
import re
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests


# =========================
# Simple CLI UI (ANSI)
# =========================

class Style:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


def section_title(text: str):
    print(f"\n{Style.BLUE}{Style.BOLD}== {text} =={Style.RESET}")


def info(msg: str):
    print(f"{Style.CYAN}ℹ {msg}{Style.RESET}")


def ok(msg: str):
    print(f"{Style.GREEN}✔ {msg}{Style.RESET}")


def fail(msg: str):
    print(f"{Style.RED}✘ {msg}{Style.RESET}")


# =========================
# Config
# =========================

STORE_BASE = os.getenv("STORE_BASE", "http://localhost:8080")
TIMEOUT_SECONDS = int(os.getenv("TIMEOUT_SECONDS", "30"))
DEBUG = os.getenv("DEBUG", "0").strip() in {"1", "true", "True", "YES", "yes"}

# Test data: the default seed's second product.
PRODUCT_ID = 2
PRODUCT_NAME = "WFX Dark Chocolate"
PRODUCT_PRICE = 2.50
QUANTITY = 3

ORDER_ID_RE = re.compile(r"Your order ID is (\d+)\.")


def debug(msg: str):
    if DEBUG:
        print(f"{Style.GRAY}… {msg}{Style.RESET}")


@dataclass
class CheckResult:
    name: str
    success: bool
    details: str = ""


# =========================
# HTTP helpers
# =========================

def http(method: str, path: str, **kwargs) -> requests.Response:
    kwargs.setdefault("timeout", 8)
    url = STORE_BASE + path
    debug(f"{method} {url} kwargs={kwargs}")
    return requests.request(method, url, **kwargs)


def wait_for_ready(timeout: int = TIMEOUT_SECONDS) -> bool:
    start = time.time()
    while time.time() - start < timeout:
        try:
            if http("GET", "/readyz").status_code == 200:
                ok("storefront is ready.")
                return True
        except requests.exceptions.RequestException as e:
            debug(f"storefront not ready: {e}")
        time.sleep(1)
    fail(f"storefront did not become ready in {timeout} seconds.")
    return False


def checkout(cart_data: Optional[str], name: str = "Alice", address: str = "1 Main St") -> requests.Response:
    data: Dict[str, Any] = {"name": name, "address": address}
    if cart_data is not None:
        data["cartData"] = cart_data
    return http("POST", "/checkout", data=data)


# =========================
# Checks
# =========================

def check(name: str, success: bool, details: str) -> CheckResult:
    (ok if success else fail)(f"{name}: {details}")
    return CheckResult(name, success, details)


def check_health() -> CheckResult:
    section_title("Liveness")
    resp = http("GET", "/healthz")
    return check("Healthz", resp.status_code == 200 and resp.text == "ok", f"HTTP {resp.status_code} {resp.text!r}")


def check_catalog() -> CheckResult:
    section_title("Catalog")
    resp = http("GET", "/products")
    success = resp.status_code == 200 and PRODUCT_NAME in resp.text
    return check("Products Page", success, f"HTTP {resp.status_code}, '{PRODUCT_NAME}' listed={PRODUCT_NAME in resp.text}")


def check_happy_path() -> CheckResult:
    section_title("Checkout Happy Path")
    cart = f'[{{"id": {PRODUCT_ID}, "name": "{PRODUCT_NAME}", "price": {PRODUCT_PRICE}, "quantity": {QUANTITY}}}]'
    info(f"POST /checkout with {QUANTITY} x {PRODUCT_NAME}")
    resp = checkout(cart)
    match = ORDER_ID_RE.search(resp.text)
    success = resp.status_code == 200 and match is not None
    order_id = match.group(1) if match else None
    return check("Checkout", success, f"HTTP {resp.status_code}, order id={order_id}")


def check_rejections() -> List[CheckResult]:
    section_title("Checkout Rejections")
    results = []
    for name, cart_data, expected in [
        ("Malformed Cart", "[{oops", "Invalid cart data"),
        ("Empty Cart", "[]", "Cart is empty"),
        ("Missing Cart", None, "Cart is empty"),
    ]:
        resp = checkout(cart_data)
        results.append(check(name, resp.status_code == 400 and resp.text == expected,
                             f"HTTP {resp.status_code} {resp.text!r}"))
    return results


# =========================
# Summary
# =========================

def print_results(results: List[CheckResult]) -> int:
    print(f"\n{Style.BOLD}================ RESULTS ================{Style.RESET}")
    passed = sum(1 for r in results if r.success)
    for r in results:
        color = Style.GREEN if r.success else Style.RED
        print(f"{color}{'✅' if r.success else '❌'} {r.name}{Style.RESET}")
        if r.details:
            print(f"    {Style.DIM}{r.details}{Style.RESET}")
    failed = len(results) - passed
    print(f"Total: {len(results)}  |  Passed: {Style.GREEN}{passed}{Style.RESET}  |  Failed: {Style.RED}{failed}{Style.RESET}")
    if failed:
        print(f"{Style.YELLOW}- Check the server logs and the DB_* / DATABASE_URL settings.{Style.RESET}")
    return failed


def main():
    info(f"Target: {STORE_BASE}")
    if not wait_for_ready():
        sys.exit(1)

    results: List[CheckResult] = [check_health(), check_catalog(), check_happy_path()]
    results.extend(check_rejections())

    sys.exit(1 if print_results(results) else 0)


if __name__ == "__main__":
    main()
