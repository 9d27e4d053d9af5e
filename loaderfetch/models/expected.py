"""
安装器生成文件模板

每个条目描述一个可能以多个 classifier 出现的逻辑构件，classifier 顺序即优先级。
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Dict, Optional, Sequence, Tuple

from loaderfetch.models.coordinate import MavenCoordinate
from loaderfetch.models.version import MinecraftVersion, is_version_acceptable

if TYPE_CHECKING:
    from loaderfetch.resolver.families import LoaderFamily

WILDCARD_MCP_VERSION = "${mcpVersion}"

MINECRAFT_GROUP = "net.minecraft"
MINECRAFT_CLIENT_ARTIFACT = "client"

EXECUTABLE_JAR_SINCE = MinecraftVersion.parse("1.20.3")


@dataclass(frozen=True)
class ExpectedFile:
    """安装器应生成的文件"""

    name: str
    group: str
    artifact: str
    version: str
    classifiers: Tuple[Optional[str], ...] = (None,)
    skip_if_not_present: bool = False
    classpath: bool = True

    def coordinate(self, classifier: Optional[str]) -> MavenCoordinate:
        return MavenCoordinate(self.group, self.artifact, self.version, classifier)


def resolve_placeholders(
    templates: Sequence[ExpectedFile], values: Dict[str, str]
) -> Tuple[ExpectedFile, ...]:
    """
    用解析出的值替换模板中的占位符

    模板本身不会被修改，返回新的列表。
    """
    resolved = []
    for entry in templates:
        version = entry.version
        for token, value in values.items():
            version = version.replace(token, value)
        resolved.append(entry if version == entry.version else replace(entry, version=version))
    return tuple(resolved)


def is_executable_jar(version: MinecraftVersion) -> bool:
    return version >= EXECUTABLE_JAR_SINCE


def generated_files_for(
    family: "LoaderFamily",
    minecraft_version: MinecraftVersion,
    artifact_version: str,
) -> Tuple[Tuple[ExpectedFile, ...], Tuple[str, ...]]:
    """
    获取安装器生成文件模板及其使用的占位符

    Returns:
        (模板列表, 占位符列表)；模板为空时无需运行安装器
    """
    group = family.group
    loader_artifact = family.loader_artifact(minecraft_version)

    def loader_file(name, classifier, **kwargs) -> ExpectedFile:
        return ExpectedFile(
            name, group, loader_artifact, artifact_version, (classifier,), **kwargs
        )

    def fml_files(*names: str) -> Tuple[ExpectedFile, ...]:
        return tuple(ExpectedFile(name, group, name, artifact_version) for name in names)

    if is_executable_jar(minecraft_version):
        return (
            (
                loader_file("universal jar", "universal"),
                loader_file("client jar", "client"),
                loader_file("client shim", "shim", classpath=False),
                *fml_files("fmlcore", "javafmllanguage", "mclanguage", "lowcodelanguage"),
            ),
            (),
        )

    if not is_version_acceptable(minecraft_version, family.installer_minors):
        return (), ()

    mcp_unified = f"{minecraft_version}-{WILDCARD_MCP_VERSION}"

    files = [
        loader_file("universal jar", "universal", classpath=False),
        loader_file("client jar", "client", classpath=False),
    ]
    # 1.17+ 增加 fml 语言库，1.18+ 增加 lowcodelanguage
    if is_version_acceptable(minecraft_version, range(17, 21)):
        files += fml_files("fmlcore", "javafmllanguage", "mclanguage")
    if is_version_acceptable(minecraft_version, range(18, 21)):
        files += fml_files("lowcodelanguage")

    files += [
        ExpectedFile(
            "client data",
            MINECRAFT_GROUP,
            MINECRAFT_CLIENT_ARTIFACT,
            str(minecraft_version),
            ("data",),
            skip_if_not_present=True,
            classpath=False,
        ),
        ExpectedFile(
            "client srg",
            MINECRAFT_GROUP,
            MINECRAFT_CLIENT_ARTIFACT,
            mcp_unified,
            ("srg",),
            classpath=False,
        ),
    ]

    if not is_version_acceptable(minecraft_version, range(18, 21)):
        files += [
            ExpectedFile(
                "client slim",
                MINECRAFT_GROUP,
                MINECRAFT_CLIENT_ARTIFACT,
                mcp_unified,
                ("slim", "slim-stable"),
                classpath=False,
            ),
            ExpectedFile(
                "client extra",
                MINECRAFT_GROUP,
                MINECRAFT_CLIENT_ARTIFACT,
                mcp_unified,
                ("extra", "extra-stable"),
                classpath=False,
            ),
        ]

    return tuple(files), (WILDCARD_MCP_VERSION,)
