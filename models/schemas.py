"""
Data Models / Schemas
定义统一的数据结构
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator


# 语言 slug -> 模板文件扩展名
LANGUAGE_EXTENSIONS: Dict[str, str] = {
    "cpp": "cpp",
    "java": "java",
    "python3": "py",
    "python": "py2",
    "javascript": "js",
    "typescript": "ts",
    "csharp": "cs",
    "c": "c",
    "golang": "go",
    "kotlin": "kt",
    "swift": "swift",
    "rust": "rs",
    "ruby": "rb",
    "php": "php",
    "dart": "dart",
    "scala": "scala",
    "elixir": "ex",
    "erlang": "erl",
    "racket": "rkt",
    "mysql": "sql",
    "mssql": "mssql.sql",
    "postgresql": "pgsql.sql",
    "oraclesql": "oracle.sql",
    "pythondata": "pandas.py",
    "bash": "sh",
}


def extension_for(variant: str) -> str:
    """未知语言直接使用 slug 作为扩展名"""
    return LANGUAGE_EXTENSIONS.get(variant, variant)


class OutputFormat(str, Enum):
    """题面输出格式"""
    HTML = "html"      # structured
    MARKDOWN = "md"    # lightweight
    RAW = "raw"

    @property
    def filename(self) -> str:
        return {
            OutputFormat.HTML: "problem.html",
            OutputFormat.MARKDOWN: "problem.md",
            OutputFormat.RAW: "problem.raw.txt",
        }[self]


class SubResourceKind(str, Enum):
    """子资源类型"""
    DESCRIPTION = "description"
    TEMPLATE = "template"
    OFFICIAL_ANSWER = "officialAnswer"
    COMMUNITY_ANSWER = "communityAnswer"


class ItemStatus(str, Enum):
    """单题完成度"""
    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"


class Credential(BaseModel):
    """登录凭证 (不透明 token)，显式传递给每个请求"""
    model_config = ConfigDict(frozen=True)

    session: str = Field(..., description="LEETCODE_SESSION cookie")
    csrf: str = Field(..., description="csrftoken cookie")
    username: Optional[str] = Field(None, description="用户名")
    is_premium: bool = Field(default=False, description="是否为付费会员")


class Item(BaseModel):
    """目录中的一道题"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="前端题号")
    name: str = Field(..., description="题目标题")
    slug: str = Field(..., description="titleSlug")
    difficulty: str = Field(..., description="难度")
    locked: bool = Field(default=False, description="是否付费题")
    tags: List[str] = Field(default_factory=list, description="话题标签 slug")
    companies: List[str] = Field(default_factory=list, description="公司标签 slug")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        return str(value)

    @property
    def primary_tag(self) -> str:
        return self.tags[0] if self.tags else "uncategorized"


class Document(BaseModel):
    """富文本正文 + 按首次出现顺序去重的媒体链接"""
    body: str = ""
    media: List[str] = Field(default_factory=list)


class ItemDetail(BaseModel):
    """题目详情"""
    document: Document
    variants: List[str] = Field(default_factory=list, description="可用语言 slug")
    templates: Dict[str, str] = Field(default_factory=dict, description="语言 -> 代码模板")
    category_title: str = Field(default="Algorithms")
    likes: int = 0
    dislikes: int = 0


class Answer(BaseModel):
    """题解 (官方或社区)"""
    document: Document
    title: Optional[str] = None
    author: Optional[str] = None
    votes: int = 0
    url: str = ""


class SubResourceOutcome(BaseModel):
    """某一类子资源的 achieved/total 计数"""
    kind: SubResourceKind
    total: int = 0
    achieved: int = 0
    variants: List[str] = Field(default_factory=list, description="成功的语言")

    @property
    def is_complete(self) -> bool:
        return self.achieved >= self.total

    def snapshot(self) -> str:
        return f"{self.achieved}/{self.total}"


class Evaluation(BaseModel):
    status: ItemStatus
    reasons: List[str] = Field(default_factory=list)


class FailureDetail(BaseModel):
    """进度文件中 failed 条目"""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    slug: str
    reasons: List[str] = Field(default_factory=list)
    last_attempt: str = Field(..., alias="lastAttempt")
    status_snapshot: Dict[str, str] = Field(default_factory=dict, alias="statusSnapshot")


class ItemResult(BaseModel):
    """单题处理结果，交给 ProgressStore 合并"""
    item: Item
    description_ok: bool = False
    templates: SubResourceOutcome = Field(
        default_factory=lambda: SubResourceOutcome(kind=SubResourceKind.TEMPLATE)
    )
    official_answer: SubResourceOutcome = Field(
        default_factory=lambda: SubResourceOutcome(kind=SubResourceKind.OFFICIAL_ANSWER)
    )
    community_answer: SubResourceOutcome = Field(
        default_factory=lambda: SubResourceOutcome(kind=SubResourceKind.COMMUNITY_ANSWER)
    )
    evaluation: Optional[Evaluation] = None
    error: Optional[str] = None

    def status_snapshot(self) -> Dict[str, str]:
        return {
            "description": f"{1 if self.description_ok else 0}/1",
            "templates": self.templates.snapshot(),
            "official": self.official_answer.snapshot(),
            "community": self.community_answer.snapshot(),
        }


class FetchConfig(BaseModel):
    """一次下载运行的配置 (由 CLI 层构造)"""
    item_id: Optional[str] = None
    formats: List[OutputFormat] = Field(
        default_factory=lambda: [OutputFormat.HTML, OutputFormat.MARKDOWN, OutputFormat.RAW]
    )
    fetch_templates: bool = True
    fetch_community_answers: bool = True
    fetch_official_answer: bool = True
    concurrency: int = Field(default=5, ge=1)

    def requested_kinds(self) -> Set[SubResourceKind]:
        kinds = set()
        if self.fetch_templates:
            kinds.add(SubResourceKind.TEMPLATE)
        if self.fetch_official_answer:
            kinds.add(SubResourceKind.OFFICIAL_ANSWER)
        if self.fetch_community_answers:
            kinds.add(SubResourceKind.COMMUNITY_ANSWER)
        return kinds


class RunSummary(BaseModel):
    """运行汇总"""
    total: int = 0
    succeeded: int = 0
    already_done: int = 0
    failed: int = 0
    skipped: int = 0
    aborted: bool = False
    abort_reason: Optional[str] = None
    output_dir: str = ""
    progress_file: str = ""
    finished_at: datetime = Field(default_factory=datetime.now)
