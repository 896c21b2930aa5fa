"""
Walks the whole teams collection the way a synchronization engine would.

Usage:
    PAGERDUTY_TOKEN="Token token=..." python examples/sync_teams.py
"""

import logging
import os
import time

from pagerduty_adapter import (
    API_HOST,
    Adapter,
    AttributeConfig,
    DatasourceAuth,
    DatasourceConfig,
    EntityConfig,
    GetPageRequest,
)

logging.basicConfig(level=logging.INFO)

TEAMS = EntityConfig(
    external_id="teams",
    attributes=(AttributeConfig("id"), AttributeConfig("name"), AttributeConfig("description")),
)


def main() -> None:
    auth = DatasourceAuth(http_authorization=os.environ["PAGERDUTY_TOKEN"])
    config = DatasourceConfig.from_blob('{"requestTimeoutSeconds": 30}')

    with Adapter() as adapter:
        cursor = ""
        while True:
            request = GetPageRequest(
                address=API_HOST,
                entity=TEAMS,
                page_size=25,
                cursor=cursor,
                auth=auth,
                config=config,
            )
            page = adapter.get_page(request)

            # Back off and retry the same cursor when throttled
            if page.status_code == 429:
                time.sleep(int(page.retry_after_header or "1"))
                continue
            if page.status_code != 200:
                raise SystemExit(f"PagerDuty returned HTTP {page.status_code}")

            for team in page.objects:
                print(f"{team['id']}\t{team.get('name')}")

            if not page.has_more:
                break
            cursor = page.next_cursor


if __name__ == "__main__":
    main()
