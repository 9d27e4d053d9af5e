"""
模块树模型

分发清单中的模块节点以及构件描述符。
"""

import hashlib
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ModuleType(Enum):
    """模块类型"""

    FORGE_HOSTED = "ForgeHosted"
    NEOFORGE_HOSTED = "NeoForgeHosted"
    VERSION_MANIFEST = "VersionManifest"
    LIBRARY = "Library"

    @property
    def is_loader_root(self) -> bool:
        return self in (ModuleType.FORGE_HOSTED, ModuleType.NEOFORGE_HOSTED)


@dataclass
class Artifact:
    """构件描述符"""

    size: int
    md5: str
    sha1: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"size": self.size, "MD5": self.md5, "url": self.url}


def generate_artifact(data: bytes, stat: os.stat_result, url: str) -> Artifact:
    """
    根据文件内容与元数据生成构件描述符

    Args:
        data: 刚从磁盘读取的文件内容
        stat: 文件元数据
        url: 分发地址

    Returns:
        Artifact
    """
    return Artifact(
        size=stat.st_size,
        md5=hashlib.md5(data).hexdigest(),
        sha1=hashlib.sha1(data).hexdigest(),
        url=url,
    )


@dataclass
class Module:
    """模块树节点"""

    id: str
    name: str
    type: ModuleType
    artifact: Artifact
    classpath: bool = True
    sub_modules: List["Module"] = field(default_factory=list)

    def find(self, module_id: str) -> Optional["Module"]:
        """在直接子模块中按 id 查找"""
        for mdl in self.sub_modules:
            if mdl.id == module_id:
                return mdl
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
        }
        if not self.classpath:
            data["classpath"] = False
        data["artifact"] = self.artifact.to_dict()
        if self.sub_modules:
            data["subModules"] = [mdl.to_dict() for mdl in self.sub_modules]
        return data
