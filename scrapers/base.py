"""
Base Scraper
题库目录适配器的抽象基类
"""
from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional
import logging

from config import get_settings
from models import Answer, Credential, Item, ItemDetail


logger = logging.getLogger(__name__)


class BaseCatalogScraper(ABC):
    """
    目录抓取器抽象基类
    所有请求都需要显式传入 Credential，缺失或被拒绝时抛出 AuthError
    """

    def __init__(self):
        self.settings = get_settings()
        self._session = None

    @property
    @abstractmethod
    def name(self) -> str:
        """返回抓取器名称"""
        pass

    @abstractmethod
    def list_all(self, credential: Credential) -> AsyncIterator[Item]:
        """
        分页遍历整个题库

        Args:
            credential: 登录凭证

        Yields:
            Item
        """
        pass

    @abstractmethod
    async def find_item(self, credential: Credential, item_id: str) -> Optional[Item]:
        """按题号查找单题，找不到返回 None"""
        pass

    @abstractmethod
    async def fetch_detail(self, credential: Credential, item: Item) -> ItemDetail:
        """
        获取题目详情 (正文、可用语言、代码模板)

        Raises:
            AuthError: 会话失效 (非付费题返回空正文也视为失效)
            NotFoundError: 题目不存在或无权限
        """
        pass

    @abstractmethod
    async def fetch_template(self, credential: Credential, slug: str, variant: str) -> Optional[str]:
        """获取某语言的代码模板，不存在返回 None"""
        pass

    @abstractmethod
    async def fetch_community_answer(self, credential: Credential, slug: str, variant: str) -> Answer:
        """
        获取某语言票数最高的社区题解

        Raises:
            NoAnswerAvailable: 该语言下没有题解
        """
        pass

    @abstractmethod
    async def fetch_official_answer(self, credential: Credential, slug: str) -> Optional[Answer]:
        """获取官方题解，不存在返回 None"""
        pass

    async def verify_session(self, credential: Credential) -> Optional[Credential]:
        """
        远程校验会话

        Returns:
            以服务端账号信息刷新后的凭证，会话无效返回 None；默认原样返回
        """
        return credential

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    async def close(self):
        """清理资源"""
        if self._session:
            await self._session.close()
            self._session = None

    def _log_error(self, message: str, error: Exception):
        """记录错误日志"""
        logger.error(f"[{self.name}] {message}: {error}")
