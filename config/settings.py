"""
Settings Configuration
使用 Pydantic 进行配置验证和管理
"""
from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class ProviderSettings(BaseSettings):
    """抽取服务提供商配置 (fallback chain 的凭据与模型)"""

    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_GENERATIVE_AI_API_KEY"),
        description="Google Gemini API Key",
    )
    gemini_model: str = Field(default="gemini-2.5-flash", description="Gemini 模型名称")

    groq_api_key: Optional[str] = Field(default=None, description="Groq API Key (open-weight models)")
    groq_model: str = Field(default="llama-3.3-70b-versatile", description="Groq 模型名称")
    groq_base_url: str = Field(default="https://api.groq.com/openai/v1", description="Groq OpenAI 兼容接口")

    openrouter_api_key: Optional[str] = Field(default=None, description="OpenRouter API Key")
    openrouter_model: str = Field(default="google/gemini-2.5-flash", description="OpenRouter 模型名称")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1", description="OpenRouter 网关地址")

    prefer_open_models: bool = Field(
        default=False,
        validation_alias=AliasChoices("PROMPT_CURATOR_PREFER_OPEN_MODELS", "PREFER_OPEN_MODELS"),
        description="使用 groq → openrouter → gemini 的替代顺序",
    )

    temperature: float = Field(default=0.1, description="生成温度")
    max_tokens: int = Field(default=8192, description="最大生成token数")
    timeout: float = Field(default=120.0, description="单次调用超时(秒)")

    class Config:
        env_prefix = ""
        extra = "ignore"
        populate_by_name = True


class PipelineSettings(BaseSettings):
    """流水线参数"""

    batch_size: int = Field(default=5, ge=1, description="每批发送给 LLM 的候选数")
    batch_delay_seconds: float = Field(default=5.0, ge=0.0, description="批次间固定等待(秒)")
    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0, description="置信度阈值 (<= 即拒绝)")
    min_shrink_ratio: float = Field(default=0.5, ge=0.0, le=1.0, description="写入时允许的最小规模比例")
    fingerprint_min_length: int = Field(default=10, ge=0, description="内容指纹登记的最小长度 (严格大于)")
    snippet_max_chars: int = Field(default=2000, ge=50, description="发送给 LLM 的正文截断长度")
    audit_max_records: int = Field(default=300, ge=1, description="审计时发送的最大记录数")

    class Config:
        env_prefix = "PROMPT_CURATOR_"
        extra = "ignore"


class StorageSettings(BaseSettings):
    """存储配置"""

    data_dir: str = Field(default="./data", description="数据目录")
    corpus_file: str = Field(default="prompts.json", description="正式语料文件")
    source_files: List[str] = Field(
        default_factory=lambda: ["reddit.json", "github.json", "google_gallery.json", "aistudio.json", "x.json"],
        description="各采集器输出文件",
    )
    rejection_log_file: str = Field(default="rejected/rejected.json", description="拒绝记录 (追加)")
    audit_plan_file: str = Field(default="audit_plan.json", description="审计计划文件")
    reports_dir: str = Field(default="./reports", description="报告目录")

    class Config:
        env_prefix = "PROMPT_CURATOR_"
        extra = "ignore"

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def corpus_path(self) -> Path:
        return self.data_path / self.corpus_file

    @property
    def rejection_log_path(self) -> Path:
        return self.data_path / self.rejection_log_file

    @property
    def audit_plan_path(self) -> Path:
        return self.data_path / self.audit_plan_file

    @property
    def reports_path(self) -> Path:
        return Path(self.reports_dir)

    def source_paths(self) -> List[Path]:
        return [self.data_path / name for name in self.source_files]


class Settings(BaseSettings):
    """主配置类 - 聚合所有子配置"""

    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """从指定的 .env 文件加载配置"""
        if env_path is None:
            env_path = Path.cwd() / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            providers=ProviderSettings(),
            pipeline=PipelineSettings(),
            storage=StorageSettings(),
        )
