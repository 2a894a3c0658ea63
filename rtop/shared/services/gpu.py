"""Best-effort GPU detection from the Linux DRM sysfs tree."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DRM_ROOT = Path("/sys/class/drm")
NVIDIA_PROC = Path("/proc/driver/nvidia/gpus")

_CARD_RE = re.compile(r"^card\d+$")
_VENDORS = {
    "0x10de": "NVIDIA",
    "0x1002": "AMD",
    "0x1022": "AMD",
    "0x8086": "Intel",
}
_GPU_SENSOR_LABELS = ("edge", "gpu", "junction", "hotspot")


@dataclass(frozen=True)
class GpuInfo:
    vendor: str
    driver: str
    pci_addr: str
    model: str
    temp_c: float | None = None


def _read(path: Path) -> str:
    try:
        return path.read_text().strip()
    except OSError:
        return ""


def _nvidia_model() -> str:
    try:
        entries = sorted(NVIDIA_PROC.iterdir())
    except OSError:
        return ""
    for entry in entries:
        for line in _read(entry / "information").splitlines():
            if line.startswith("Model:"):
                return line[len("Model:"):].strip()
    return ""


def read_hwmon_temp(device_dir: Path) -> float | None:
    """Highest GPU-labelled hwmon temperature, else the highest reading."""
    labelled: list[float] = []
    readings: list[float] = []
    try:
        hwmons = list((device_dir / "hwmon").iterdir())
    except OSError:
        return None
    for hwmon in hwmons:
        try:
            inputs = [p for p in hwmon.iterdir() if p.name.startswith("temp") and p.name.endswith("_input")]
        except OSError:
            continue
        for sensor in inputs:
            try:
                value = float(_read(sensor))
            except ValueError:
                continue
            if value > 200:
                value /= 1000.0  # millidegrees
            readings.append(value)
            label = _read(hwmon / sensor.name.replace("_input", "_label")).lower()
            if any(tag in label for tag in _GPU_SENSOR_LABELS):
                labelled.append(value)
    if labelled:
        return max(labelled)
    return max(readings) if readings else None


def detect_gpus(drm_root: Path = DRM_ROOT) -> list[GpuInfo]:
    try:
        cards = sorted(p.name for p in drm_root.iterdir() if _CARD_RE.match(p.name))
    except OSError:
        return []

    gpus: list[GpuInfo] = []
    for card in cards:
        device = drm_root / card / "device"
        vendor_id = _read(device / "vendor").lower()
        vendor = _VENDORS.get(vendor_id, vendor_id or "unknown")
        try:
            pci_addr = Path(os.path.realpath(device)).name
        except OSError:
            pci_addr = ""
        try:
            driver = Path(os.readlink(device / "driver")).name
        except OSError:
            driver = "unknown"
        model = _nvidia_model() if vendor == "NVIDIA" else ""
        if not model:
            model = f"{vendor} GPU ({_read(device / 'device') or '?'})"
        gpus.append(GpuInfo(vendor, driver, pci_addr, model, read_hwmon_temp(device)))
    logger.debug("Detected %d GPU(s)", len(gpus))
    return gpus
