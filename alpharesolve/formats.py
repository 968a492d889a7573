"""Number formatting passed explicitly to tasks and pseudo-spectrum naming."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NumberFormats:
    """Decimal places used when rendering m/z, RT and intensities."""

    mz_decimals: int = 4
    rt_decimals: int = 2
    intensity_decimals: int = 1

    def mz(self, value: float) -> str:
        return f"{value:.{self.mz_decimals}f}"

    def rt(self, value: float) -> str:
        return f"{value:.{self.rt_decimals}f}"

    def intensity(self, value: float) -> str:
        return f"{value:.{self.intensity_decimals}e}"


DEFAULT_FORMATS = NumberFormats()
