"""
言語エミッタ — 確定したアクション列を各言語のソースコードに変換
"""

from __future__ import annotations

from .csharp import CSharpEmitter
from .java import JavaEmitter
from .javascript import JavaScriptEmitter, PlaywrightTestEmitter
from .python import PytestEmitter, PythonAsyncEmitter, PythonEmitter
from .registry import EmitterRegistry, LanguageEmitter, UnknownTargetError

__all__ = [
    "CSharpEmitter",
    "EmitterRegistry",
    "JavaEmitter",
    "JavaScriptEmitter",
    "LanguageEmitter",
    "PlaywrightTestEmitter",
    "PytestEmitter",
    "PythonAsyncEmitter",
    "PythonEmitter",
    "UnknownTargetError",
    "create_default_registry",
]


def create_default_registry() -> EmitterRegistry:
    """標準の7言語を登録したレジストリを生成する。"""
    registry = EmitterRegistry()
    for emitter in (
        JavaScriptEmitter(),
        PlaywrightTestEmitter(),
        PythonEmitter(),
        PythonAsyncEmitter(),
        PytestEmitter(),
        JavaEmitter(),
        CSharpEmitter(),
    ):
        registry.register(emitter)
    return registry
