#!/usr/bin/env python3
"""sling quickstart -- masked values and request chaining.

Demonstrates the core workflow:

1. Create a Sling instance with static per-environment parameters.
2. Define a login request whose password is a secret.
3. Define a profile request that reads the token from the login response.
4. Show the redacted display view.
5. Execute the chained request.

An in-memory transport answers both calls, so no network is needed.

Run:
    python examples/quickstart.py
"""
from __future__ import annotations

import asyncio
import json
import logging

from sling import (
    ExecuteOptions,
    InMemoryTransport,
    Sling,
    SlingResponse,
    secret,
    sensitive,
    use_config,
)


def answer(request) -> SlingResponse:
    if request.url.endswith("/login"):
        payload = {"token": "tok-5f2c", "user": {"id": 7}}
    else:
        payload = {"id": 7, "name": "Marvin"}
    return SlingResponse(
        status=200,
        status_text="OK",
        headers={"content-type": "application/json"},
        body=json.dumps(payload),
    )


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    # -- Step 1: Create the factory ------------------------------------------
    api = Sling(
        use_config({"dev": {"user": "marvin@example.com", "password": "hunter2"}}),
        transport=InMemoryTransport([answer]),
    )
    params = api.parameters
    print(f"[1] Environments: {api.environments}, parameters: {params!r}")

    # -- Step 2: Login request -----------------------------------------------
    login = api.request(
        """
        POST https://auth.example.com/login HTTP/1.1
        Content-Type: application/json

        {{
          // credentials come from the active environment
          "user": "{user}",
          "password": "{password}"
        }}
        """,
        user=sensitive(params.get_required("user"), 3),
        password=secret(params.get_required("password")),
    )

    # -- Step 3: Chained profile request -------------------------------------
    profile = api.request(
        """
        GET https://api.example.com/users/{user_id} HTTP/1.1
        Authorization: Bearer {token}
        """,
        user_id=login.data_accessor("user.id"),
        token=secret(login.data_accessor("token")),
    )

    # -- Step 4: Display views -----------------------------------------------
    print("[2] Login display view:")
    print(login.display().to_text())
    print("[3] Profile display view (nothing has run yet):")
    print(profile.display().to_text())

    # -- Step 5: Execute -----------------------------------------------------
    response = await profile.execute(ExecuteOptions(verbose=True))
    print(f"[4] Profile response: {response.status} {response.json()['name']}")

    print("\nDone. No log line or display view contained a secret.")


if __name__ == "__main__":
    asyncio.run(main())
