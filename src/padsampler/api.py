"""HTTP client for the preset service.

Read contract: ``fetch_preset_list`` and ``fetch_preset_sounds``.
Write contract: ``upload_preset``.
"""

import json
import logging
from typing import List, Optional, Sequence
from urllib.parse import urljoin

import requests

from padsampler.engine.exporter import UploadFile
from padsampler.errors import NetworkError, UploadError
from padsampler.schemas.preset import Preset, PresetSummary

logger = logging.getLogger(__name__)

PRESETS_PATH = "/api/presets"


class PresetApiClient:
    def __init__(self, base_url: str, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    @property
    def presets_url(self) -> str:
        return self.base_url + PRESETS_PATH

    def resolve(self, path: str) -> str:
        """Absolute URL for a sound path stored by the service."""
        return urljoin(self.base_url + "/", path)

    def _get(self, url: str, parse):
        # pydantic's ValidationError is a ValueError, like a JSON decode failure
        try:
            res = self.session.get(url)
            res.raise_for_status()
            return parse(res.json())
        except (requests.RequestException, ValueError, TypeError) as e:
            raise NetworkError(f"GET {url} failed: {e}") from e

    def fetch_preset_list(self) -> List[PresetSummary]:
        return self._get(
            self.presets_url,
            lambda data: [PresetSummary.model_validate(item) for item in data],
        )

    def fetch_preset_sounds(self, preset_id: str) -> Preset:
        preset = self._get(f"{self.presets_url}/{preset_id}", Preset.model_validate)
        for sound in preset.sounds:
            sound.source_locator = self.resolve(sound.source_locator)
        return preset

    def upload_preset(self, name: str, category: str, files: Sequence[UploadFile]) -> PresetSummary:
        sounds = [{"padId": str(pad), "name": str(pad), "fileName": filename} for pad, _, filename in files]
        data = {"name": name, "category": category or "other", "sounds": sounds}
        multipart = [("files", (filename, payload, "audio/wav")) for _, payload, filename in files]

        try:
            res = self.session.post(self.presets_url, data={"data": json.dumps(data)}, files=multipart)
        except requests.RequestException as e:
            raise UploadError(f"Failed to create preset: {e}") from e

        try:
            body = res.json()
        except ValueError:
            body = None

        if not res.ok:
            message = body.get("message") if isinstance(body, dict) else None
            raise UploadError(message or f"Failed to create preset (HTTP {res.status_code})")
        try:
            created = PresetSummary.model_validate(body)
        except ValueError as e:
            raise UploadError(f"Preset service returned an unreadable response: {e}") from e
        logger.info("Created preset %s (%s)", created.name, created.id)
        return created
