"""
Credential Providers
凭证获取契约 + 基于本地会话文件的默认实现

OAuth 登录流程不在本项目范围内，登录工具会把会话写入
~/.lc/leetcode/user.json，这里只负责读取。
"""
from abc import ABC, abstractmethod
import json
import logging
from pathlib import Path
from typing import Optional, Union

from config import get_settings
from models import Credential
from utils.exceptions import AuthError


logger = logging.getLogger(__name__)


class CredentialProvider(ABC):
    """凭证提供者抽象基类"""

    @abstractmethod
    def acquire(self) -> Credential:
        """
        获取凭证

        Raises:
            AuthError: 无可用凭证
        """
        pass

    @abstractmethod
    def is_valid(self, credential: Credential) -> bool:
        """本地校验凭证是否可用 (不发网络请求)"""
        pass


class StaticCredentialProvider(CredentialProvider):
    """直接持有一个凭证，适合脚本调用"""

    def __init__(self, credential: Credential):
        self._credential = credential

    def acquire(self) -> Credential:
        return self._credential

    def is_valid(self, credential: Credential) -> bool:
        return bool(credential.session and credential.csrf)


class SessionFileCredentialProvider(CredentialProvider):
    """
    从会话文件读取凭证

    文件格式:
        {"sessionId": "...", "sessionCSRF": "...", "name": "...", "paid": false}
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else Path(get_settings().session.file).expanduser()

    def acquire(self) -> Credential:
        if not self.path.exists():
            raise AuthError("No session found. Please login first.", {"path": str(self.path)})

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise AuthError(f"Could not read session file: {e}", {"path": str(self.path)}) from e

        session = str(data.get("sessionId") or "").strip()
        csrf = str(data.get("sessionCSRF") or "").strip()
        if not session or not csrf:
            raise AuthError("Session file is missing cookies. Please login first.")

        credential = Credential(
            session=session,
            csrf=csrf,
            username=data.get("name") or None,
            is_premium=bool(data.get("paid", False)),
        )
        logger.debug(f"Loaded session for {credential.username or 'unknown user'}")
        return credential

    def is_valid(self, credential: Credential) -> bool:
        return bool(credential.session and credential.csrf)
