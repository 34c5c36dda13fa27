"""
Echo Macro 数据模型定义。

包含以下模型：
- EnvironmentState: 进程运行环境快照（是否处于 Flatpak 沙箱）
- Invocation: 一次外部命令调用（程序 + 参数向量）
- Success / SpawnFailed / ExitedWithError: 一次调用的结果
- DiagnosticReport: 面向运维人员的失败诊断
- TypeTextSettings: 按键动作的配置
- ActionEvent / ShowAlert / RegisterPlugin: OpenDeck WebSocket 消息
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import DEFAULT_FALLBACK_TEXT, EVENT_SHOW_ALERT

DiagnosticCategory = Literal[
    "service_not_running",
    "sandbox_permission_missing",
    "tool_not_installed",
    "unknown",
]


class EnvironmentState(BaseModel):
    """
    进程运行环境快照。

    进程启动时由 SandboxDetector 计算一次，之后作为只读值传给所有需要的组件。
    """

    model_config = ConfigDict(frozen=True)

    isolated: bool
    has_identity_marker: bool = False
    has_marker_file: bool = False

    @property
    def mode(self) -> str:
        return "flatpak" if self.isolated else "native"


class Invocation(BaseModel):
    """外部命令调用，直接以参数向量执行，不经过 shell。"""

    model_config = ConfigDict(frozen=True)

    program: str
    arguments: List[str] = Field(default_factory=list)

    def argv(self) -> List[str]:
        return [self.program, *self.arguments]


class _Outcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def succeeded(self) -> bool:
        return False


class Success(_Outcome):
    """进程以0退出。"""

    kind: Literal["success"] = "success"

    @property
    def succeeded(self) -> bool:
        return True


class SpawnFailed(_Outcome):
    """程序无法启动（不存在、无执行权限等）。"""

    kind: Literal["spawn_failed"] = "spawn_failed"
    message: str


class ExitedWithError(_Outcome):
    """程序已运行但以非0状态退出。"""

    kind: Literal["exited_with_error"] = "exited_with_error"
    stderr: str = ""
    exit_code: int


DispatchOutcome = Union[Success, SpawnFailed, ExitedWithError]


class DiagnosticReport(BaseModel):
    """失败诊断，仅用于日志输出。"""

    model_config = ConfigDict(frozen=True)

    category: DiagnosticCategory
    message: str
    detail: Optional[str] = None  # unknown 类别时附带原始 stderr


class TypeTextSettings(BaseModel):
    """
    按键动作的配置，由属性检查器（Property Inspector）写入。

    delay_ms 仅为兼容旧配置而保留：ydotool 一次性键入整段文本，逐字符延迟被忽略。
    """

    model_config = ConfigDict(extra="ignore")

    text: str = ""
    delay_ms: Optional[int] = None

    @field_validator("delay_ms", mode="before")
    @classmethod
    def lenient_delay(cls, value: Any) -> Optional[int]:
        # 该字段被忽略，无法识别的值不能让整个配置（包括 text）失效
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return None

    @classmethod
    def from_payload(cls, settings: Optional[Dict[str, Any]]) -> "TypeTextSettings":
        """
        从事件负载解析配置，解析失败时返回默认配置。

        Args:
            settings: 事件中的 settings 字典

        Returns:
            TypeTextSettings: 解析后的配置
        """
        try:
            return cls.model_validate(settings or {})
        except ValidationError:
            return cls()

    def resolve_text(self, fallback: str = DEFAULT_FALLBACK_TEXT) -> str:
        """返回要键入的文本，未配置时使用后备文本。"""
        return self.text if self.text else fallback


class ActionPayload(BaseModel):
    """动作事件的 payload 部分。"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    settings: Dict[str, Any] = Field(default_factory=dict)
    coordinates: Optional[Dict[str, int]] = None
    state: Optional[int] = None
    is_in_multi_action: Optional[bool] = Field(default=None, alias="isInMultiAction")


class ActionEvent(BaseModel):
    """OpenDeck 下发的动作事件（keyDown、willAppear 等）。"""

    model_config = ConfigDict(extra="ignore")

    event: str
    action: Optional[str] = None
    context: Optional[str] = None
    device: Optional[str] = None
    payload: ActionPayload = Field(default_factory=ActionPayload)


class ShowAlert(BaseModel):
    """请求在按键上显示警告标志。"""

    event: Literal["showAlert"] = EVENT_SHOW_ALERT
    context: str


class RegisterPlugin(BaseModel):
    """连接建立后发送的插件注册消息。"""

    event: str
    uuid: str
