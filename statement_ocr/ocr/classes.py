# ocr/classes.py
from dataclasses import dataclass, field
from typing import Optional

# Alphanumerics plus the punctuation statements actually print.
# Quoted: pytesseract splits the config string with shlex.
STATEMENT_WHITELIST = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ.,/- "


@dataclass
class PreprocessSettings:
    # rendering
    dpi: int = 300

    # "basic" = grayscale + fixed cutoff, "enhanced" = Otsu/deskew/denoise/adaptive (needs OpenCV)
    mode: str = "enhanced"
    threshold_cutoff: int = 128

    # deskew
    deskew: bool = True
    min_contour_area: float = 100.0
    min_skew_angle: float = 0.5
    max_skew_angle: float = 45.0

    # denoise + local threshold
    median_kernel: int = 3
    adaptive_block_size: int = 11
    adaptive_C: int = 2


@dataclass
class TesseractSettings:
    oem: int = 1
    psm: int = 6
    lang: str = "eng"
    whitelist: Optional[str] = STATEMENT_WHITELIST
    disable_dicts: bool = False
    extra: str = ""  # any extra flags

    def build_config(self) -> str:
        cfg = f"--oem {self.oem} --psm {self.psm}"
        if self.whitelist:
            cfg += f" -c \"tessedit_char_whitelist={self.whitelist}\""
        if self.disable_dicts:
            cfg += " -c load_system_dawg=0 -c load_freq_dawg=0"
        if self.extra:
            cfg += f" {self.extra}"
        return cfg


@dataclass
class OcrProfile:
    name: str
    preprocess: PreprocessSettings = field(default_factory=PreprocessSettings)
    tesseract: TesseractSettings = field(default_factory=TesseractSettings)
