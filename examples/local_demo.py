import os
import shutil
import tempfile
from enum import Enum

import sys
from pathlib import Path

# Ensure the repo root is on sys.path when running as a script.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from pydantic import BaseModel

from common.config import Settings
from storebox import BoxRegistry, BoxType


class SessionKeys(str, Enum):
    ACCESS_TOKEN = "accessToken"
    PROFILE = "profile"


class PrefKeys(str, Enum):
    THEME = "theme"
    LAUNCH_COUNT = "launchCount"
    HOMEPAGE = "homepage"
    RECENT = "recent"


class Profile(BaseModel):
    username: str
    plan: str = "free"


def main() -> int:
    data_dir = Path(tempfile.mkdtemp(prefix="storebox-demo-"))
    settings = Settings(
        data_dir=data_dir,
        password=os.environ.get("STOREBOX_PASSWORD", "demo-only-password"),
        persist_mode="debounced",
    )

    try:
        # ===== Secure box =====
        registry = BoxRegistry(settings=settings)
        session = registry.load(SessionKeys, BoxType.SECURE)
        session.set(SessionKeys.ACCESS_TOKEN, "tok-" + "11" * 16)  # demo-only token
        session.set_encodable(Profile(username="ada"), SessionKeys.PROFILE)
        print("[secure] keys:", sorted(k.value for k in session.all_keys()))
        print("[secure] profile:", session.get_decodable(Profile, SessionKeys.PROFILE))

        # ===== Insecure box =====
        prefs = registry.load(PrefKeys, BoxType.INSECURE)
        prefs.get_or_set(str, PrefKeys.THEME, "dark")
        prefs.set(PrefKeys.LAUNCH_COUNT, prefs.get_int(PrefKeys.LAUNCH_COUNT) + 1)
        prefs.set(PrefKeys.HOMEPAGE, "https://example.com")
        prefs[PrefKeys.RECENT] = ["a.txt", "b.txt"]
        print("[insecure] theme:", prefs.get_string(PrefKeys.THEME))
        print("[insecure] launches:", prefs.get_int(PrefKeys.LAUNCH_COUNT))
        print("[insecure] homepage:", prefs.get_url(PrefKeys.HOMEPAGE))
        print("[insecure] recent:", prefs.get_list(PrefKeys.RECENT))

        # app is going away: write pending debounced saves now
        registry.flush_all()
        print("[files]", sorted(str(p.relative_to(data_dir)) for p in data_dir.rglob("*.box")))

        # ===== Reconstruction =====
        restored = BoxRegistry(settings=settings).load(SessionKeys, BoxType.SECURE)
        print("[restored] token present:", restored.exists(SessionKeys.ACCESS_TOKEN))

        restored.clear_storage()
        print("[restored] after clear:", restored.all_keys())
    finally:
        shutil.rmtree(data_dir, ignore_errors=True)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
