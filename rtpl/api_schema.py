"""
JSON schema of the `rtpl report` command output.

Field names are serialized in camelCase (by_alias=True).
"""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

PROTOCOL_VERSION = 1


class TemplateReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    protocol: int = PROTOCOL_VERSION
    tool_version: str = Field(alias="toolVersion")
    template_name: str = Field(alias="templateName")
    # Корневые переменные, на которые ссылается шаблон
    variables: List[str] = Field(default_factory=list)
    node_counts: Dict[str, int] = Field(default_factory=dict, alias="nodeCounts")
    data_sources: List[str] = Field(default_factory=list, alias="dataSources")
    rendered_chars: int = Field(alias="renderedChars")
    rendered_lines: int = Field(alias="renderedLines")


__all__ = ["TemplateReport", "PROTOCOL_VERSION"]
