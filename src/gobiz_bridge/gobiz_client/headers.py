"""
Request headers expected by the GoBiz web dashboard API.

The platform only accepts calls that look like they come from the merchant
portal, so every request carries the same client-identity and locale headers.
"""

from typing import Optional

APP_ID = "go-biz-web-dashboard"
APP_VERSION = "platform-v3.97.0-b986b897"
PORTAL_ORIGIN = "https://portal.gofoodmerchant.co.id"

COMMON_HEADERS: dict[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "id",
    "Origin": PORTAL_ORIGIN,
    "Referer": f"{PORTAL_ORIGIN}/",
    "Authentication-Type": "go-id",
    "Gojek-Country-Code": "ID",
    "Gojek-Timezone": "Asia/Jakarta",
    "X-Appid": APP_ID,
    "X-Appversion": APP_VERSION,
    "X-Deviceos": "Web",
    "X-Phonemake": "Windows 10 64-bit",
    "X-Phonemodel": "Chrome 143.0.0.0 on Windows 10 64-bit",
    "X-Platform": "Web",
    "X-User-Locale": "en-US",
    "X-User-Type": "merchant",
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "sec-ch-ua": '"Google Chrome";v="143", "Chromium";v="143"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"Windows"',
    "sec-fetch-dest": "empty",
    "sec-fetch-mode": "cors",
    "sec-fetch-site": "cross-site",
}


def build_headers(device_unique_id: str, access_token: Optional[str] = None) -> dict[str, str]:
    """
    Build the header set for one downstream call.

    Args:
        device_unique_id: Session device identifier (sent as X-Uniqueid)
        access_token: Bearer credential; omitted for the login handshake

    Returns:
        New dict of header name to value
    """
    headers = dict(COMMON_HEADERS)
    headers["X-Uniqueid"] = device_unique_id
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return headers
