"""
Optical power classification.

Pure functions over a received-power reading in dBm. Three flavours exist
because vendors report status differently: Huawei-style fixed bands, V-SOL
style caller thresholds (0.0 meaning "no reading"), and the four-band
SNMP alerting scheme.
"""

from dataclasses import dataclass


NORMAL = "normal"
WARNING = "warning"
CRITICAL = "critical"
UNKNOWN = "unknown"


@dataclass(frozen=True)
class OpticalThresholds:
    """Rx power alert bands in dBm."""
    rx_low_warning: float = -27.0
    rx_low_critical: float = -30.0
    rx_high_warning: float = -8.0
    rx_high_critical: float = -5.0


DEFAULT_THRESHOLDS = OpticalThresholds()


@dataclass
class OpticalDiagnostics:
    """Optical readings for one ONU. 0.0 means the field was not reported."""
    rx_power: float = 0.0
    tx_power: float = 0.0
    olt_rx_power: float = 0.0
    temperature: float = 0.0
    voltage: float = 0.0
    bias_current: float = 0.0
    rx_power_status: str = UNKNOWN
    tx_power_status: str = UNKNOWN


def classify_rx_power(power: float) -> str:
    """
    Fixed-band status used for Huawei ONT readings.

    Bounds are strict: exactly -27.0 is normal, exactly -30.0 is warning.
    """
    if power < -30.0:
        return CRITICAL
    if power < -27.0:
        return WARNING
    if power > -5.0:
        return CRITICAL
    if power > -8.0:
        return WARNING
    return NORMAL


def classify_with_thresholds(power: float, critical: float, warning: float) -> str:
    """Status against caller thresholds; 0.0 means the ONU reported nothing."""
    if power == 0:
        return UNKNOWN
    if power < critical:
        return CRITICAL
    if power < warning:
        return WARNING
    return NORMAL


def evaluate_optical_status(power: float, thresholds: OpticalThresholds = DEFAULT_THRESHOLDS) -> str:
    """
    Four-band status for telemetry alerting.

    Returns:
        One of critical_low, low, critical_high, high, normal. Bounds are inclusive.
    """
    if power <= thresholds.rx_low_critical:
        return "critical_low"
    if power <= thresholds.rx_low_warning:
        return "low"
    if power >= thresholds.rx_high_critical:
        return "critical_high"
    if power >= thresholds.rx_high_warning:
        return "high"
    return NORMAL
