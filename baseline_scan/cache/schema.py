"""Pydantic schemas for the persisted result cache.

On disk:

    {
      "version": 1,
      "configFingerprint": "...",
      "byFile": {
        "src/app.ts": {
          "contentHash": "<sha256>",
          "advisoryTargetsFingerprint": "[\\"> 0.5%\\"]" | null,
          "findings": [ {...Finding.to_dict()...}, ... ]
        }
      }
    }
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CacheEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content_hash: str = Field(alias="contentHash")
    advisory_targets_fingerprint: Optional[str] = Field(
        default=None, alias="advisoryTargetsFingerprint"
    )
    findings: list[dict] = Field(default_factory=list)


class CacheShape(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: int
    config_fingerprint: str = Field(alias="configFingerprint")
    by_file: dict[str, CacheEntry] = Field(default_factory=dict, alias="byFile")
