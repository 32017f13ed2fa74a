"""MetadataProvider 实现

PlatformMetadataProvider 从运行环境读取操作系统/设备信息，
应用版本与安装日期由宿主应用传入。
"""

import locale
import platform

import structlog

from .models.event import DeviceMetadata

log = structlog.get_logger()


def _language() -> str | None:
    try:
        code, _ = locale.getlocale()
    except ValueError:
        return None
    if not code:
        return None
    # en_US -> en
    return code.replace("-", "_").split("_")[0] or None


def _major_version(release: str) -> str | None:
    major = release.split(".")[0].strip()
    return major or None


class PlatformMetadataProvider:
    """基于 platform / locale 模块的元数据来源"""

    def __init__(
        self,
        app_version: str | None = None,
        app_install_date: str | None = None,
        device_manufacturer: str | None = None,
    ) -> None:
        """
        Args:
            app_version: 宿主应用版本
            app_install_date: 宿主应用安装日期
            device_manufacturer: 设备厂商（运行环境通常无法得知）
        """
        self._app_version = app_version
        self._app_install_date = app_install_date
        self._device_manufacturer = device_manufacturer

    def get_metadata(self) -> DeviceMetadata:
        uname = platform.uname()
        metadata = DeviceMetadata(
            language=_language(),
            app_version=self._app_version,
            app_install_date=self._app_install_date,
            os_name=uname.system or None,
            os_version=_major_version(uname.release),
            device_manufacturer=self._device_manufacturer,
            device_model=uname.machine or None,
        )
        log.debug("platform_metadata_collected", os_name=metadata.os_name)
        return metadata


class StaticMetadataProvider:
    """返回固定元数据，宿主自行采集或测试时使用"""

    def __init__(self, metadata: DeviceMetadata) -> None:
        self._metadata = metadata

    def get_metadata(self) -> DeviceMetadata:
        return self._metadata
