"""Unit tests for product API reference extraction."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from samsungdocs.apis import (
    api_overview,
    device_of,
    extract_api_since,
    extract_methods,
    extract_privileges,
    list_apis,
)

if TYPE_CHECKING:
    from samsungdocs.state import AppState

API_ROOT = "/smarttv/develop/api-references/samsung-product-api-references"
AVPLAY_KEY = f"{API_ROOT}/avplay-api.html"
SYSTEMCONTROL_KEY = f"{API_ROOT}/systemcontrol-api.html?device=signage"
PRODUCTINFO_KEY = f"{API_ROOT}/productinfo-api.html"
GUIDE_KEY = "/smarttv/develop/guides/intro.html"

AVPLAY = f"""# AVPlay API

Source: https://developer.samsung.com{AVPLAY_KEY}

The AVPlay API plays media.

Since : 2.3

Product : TV, B2B

Privilege Level : Public

Privilege : http://developer.samsung.com/privilege/avplay

## Summary of Interfaces and Methods

| Interface | Method |
| --- | --- |
| AVPlayManager | open, setDisplayRect |

## 1. Interfaces

#### open

Opens a media file.

Since : 2.3

```
void open(DOMString url);
```

#### setDisplayRect

Sets the display area.

Since : 6.5

```
void setDisplayRect(long x, long y, long width, long height);
```

#### close

No signature block here.

## 2. Full WebIDL

```
module AVPlay {{
  interface AVPlayManager {{}};
}};
```
"""

SYSTEMCONTROL = f"""# SystemControl API

Source: https://developer.samsung.com{SYSTEMCONTROL_KEY}

Since : 4.0

Privilege Level : Partner

Privilege : http://developer.samsung.com/privilege/systemcontrol

## Summary of Interfaces and Methods

| Interface | Method |
| SystemControlManager | rebootDevice |

## 1. Interfaces

Details.
"""

PRODUCTINFO = f"""# ProductInfo API

Source: https://developer.samsung.com{PRODUCTINFO_KEY}

Since : 6.0

No privilege required.
"""


@pytest.fixture()
async def api_state(app_state: AppState) -> AppState:
    pages = {
        AVPLAY_KEY: ("AVPlay API", AVPLAY),
        SYSTEMCONTROL_KEY: ("SystemControl API", SYSTEMCONTROL),
        PRODUCTINFO_KEY: ("ProductInfo API", PRODUCTINFO),
        GUIDE_KEY: ("Intro", "# Intro\n\nSince : 1.0\n\nPrivilege Level : Public\n"),
    }
    async with app_state.registry.transaction() as registry:
        for key, (title, content) in pages.items():
            await app_state.store.write(key, content)
            registry.mark_fetched(key, title, 1)
        registry.register_if_absent(f"{API_ROOT}/pending-api.html", "Pending API")
    return app_state


# ---------------------------------------------------------------------------
# Extraction helpers
# ---------------------------------------------------------------------------


class TestExtraction:
    def test_api_since(self) -> None:
        assert extract_api_since(AVPLAY) == "2.3"
        assert extract_api_since("# No version") is None

    def test_methods(self) -> None:
        methods = extract_methods(AVPLAY)
        assert [(m.name, m.since, m.signature) for m in methods] == [
            ("open", "2.3", "void open(DOMString url);"),
            ("setDisplayRect", "6.5", "void setDisplayRect(long x, long y, long width, long height);"),
            ("close", "2.3", "close()"),
        ]

    def test_privileges(self) -> None:
        assert extract_privileges(AVPLAY) == [("public", "http://developer.samsung.com/privilege/avplay")]
        assert extract_privileges(PRODUCTINFO) == []

    def test_privileges_paired_and_deduplicated(self) -> None:
        content = (
            "Privilege Level : Partner\nPrivilege : http://x/a\n"
            "Privilege Level : Public\nPrivilege : http://x/b\n"
            "Privilege Level : Partner\nPrivilege : http://x/a\n"
        )
        assert extract_privileges(content) == [("partner", "http://x/a"), ("public", "http://x/b")]

    def test_device_of(self) -> None:
        assert device_of(SYSTEMCONTROL_KEY) == "signage"
        assert device_of(f"{API_ROOT}/tvinfo-api.html?device=htv") == "htv"
        assert device_of(AVPLAY_KEY) is None


# ---------------------------------------------------------------------------
# list_apis / api_overview
# ---------------------------------------------------------------------------


class TestListApis:
    async def test_groups_by_level_in_order(self, api_state: AppState) -> None:
        output = await list_apis(api_state)

        assert output.page_count == 4  # includes the pending, uncached page
        assert list(output.groups) == ["partner", "public", "none"]
        assert output.entry_count == 3
        assert output.groups["partner"][0].device == "signage"
        assert output.groups["public"][0].api == "AVPlay API"
        assert output.groups["none"][0].privilege == "-"

    async def test_since_filter(self, api_state: AppState) -> None:
        output = await list_apis(api_state, since=">=6")
        assert list(output.groups) == ["none"]
        assert output.groups["none"][0].key == PRODUCTINFO_KEY

    async def test_custom_patterns(self, api_state: AppState) -> None:
        output = await list_apis(api_state, files=["*/guides/*"])
        assert output.page_count == 1
        assert output.groups["public"][0].key == GUIDE_KEY

    async def test_malformed_since_matches_nothing(self, api_state: AppState) -> None:
        output = await list_apis(api_state, since="~6")
        assert output.groups == {}
        assert output.entry_count == 0


class TestApiOverview:
    async def test_webidl_preferred_over_summary(self, api_state: AppState) -> None:
        output = await api_overview(api_state, device="tv")
        by_key = {api.key: api for api in output.apis}

        avplay = by_key[AVPLAY_KEY]
        assert avplay.webidl is not None
        assert avplay.webidl.startswith("module AVPlay {")
        assert avplay.summary is None
        assert avplay.privilege == "Public http://developer.samsung.com/privilege/avplay"

        productinfo = by_key[PRODUCTINFO_KEY]
        assert productinfo.privilege == "none"
        assert productinfo.since == "6.0"
        assert SYSTEMCONTROL_KEY not in by_key

    async def test_signage_device_uses_summary(self, api_state: AppState) -> None:
        output = await api_overview(api_state, device="signage")
        assert [api.key for api in output.apis] == [SYSTEMCONTROL_KEY]
        assert output.apis[0].summary is not None
        assert "rebootDevice" in output.apis[0].summary
        assert output.apis[0].device == "signage"

    async def test_since_lists_matching_methods_only(self, api_state: AppState) -> None:
        output = await api_overview(api_state, since=">=6")
        assert [api.key for api in output.apis] == [AVPLAY_KEY]
        assert [m.name for m in output.apis[0].methods] == ["setDisplayRect"]
        assert output.apis[0].webidl is None
