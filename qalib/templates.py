"""
템플릿 리소스

템플릿 목록 조회 (limit/offset 페이지네이션), 단건 조회, 전체 목록 수집.
"""

from __future__ import annotations

import logging

from .transport import Transport, parse_model, unwrap_data
from .types import Template, TemplateList
from .validation import MAX_PAGE_LIMIT, require_id, validate_page

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 50


class Templates:
    """템플릿 리소스"""

    def __init__(self, transport: Transport):
        self.transport = transport

    async def list(
        self, limit: int = DEFAULT_PAGE_LIMIT, offset: int = 0
    ) -> TemplateList:
        """템플릿 목록 조회

        Args:
            limit: 페이지 크기 (1~100)
            offset: 건너뛸 개수

        Returns:
            TemplateList: data + pagination
        """
        limit, offset = validate_page(limit, offset)
        body = await self.transport.get(
            "/templates", params={"limit": limit, "offset": offset}
        )
        return parse_model(TemplateList, body)

    async def get(self, template_id: str) -> Template:
        """템플릿 단건 조회"""
        require_id(template_id, "Template ID")
        body = await self.transport.get(f"/templates/{template_id}")
        return parse_model(Template, unwrap_data(body))

    async def list_all(self, max_results: int | None = None) -> list[Template]:
        """모든 페이지를 순회하여 템플릿 수집

        빈 페이지 또는 요청보다 짧은 페이지에서 멈춥니다.

        Args:
            max_results: 최대 수집 개수 (None이면 제한 없음)

        Returns:
            list[Template]: 원래 순서의 템플릿 목록
        """
        templates: list[Template] = []
        offset = 0

        while max_results is None or len(templates) < max_results:
            page = await self.list(limit=MAX_PAGE_LIMIT, offset=offset)

            if not page.data:
                break

            templates.extend(page.data)
            offset += len(page.data)

            if len(page.data) < MAX_PAGE_LIMIT:
                break

        logger.debug(f"[Templates] 전체 목록 수집: {len(templates)}개")

        if max_results is not None:
            return templates[:max_results]
        return templates
