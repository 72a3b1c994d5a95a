# ocr/model_settings.py
from statement_ocr.ocr.classes import OcrProfile, PreprocessSettings, TesseractSettings

DEFAULT_PROFILE = OcrProfile(
    name="DEFAULT",
    preprocess=PreprocessSettings(dpi=300, mode="enhanced"),
    tesseract=TesseractSettings(oem=1, psm=6, lang="eng"),
)

# Phone photos / skewed scans: a bit more resolution, keep spacing between columns.
SCAN_PROFILE = OcrProfile(
    name="SCAN",
    preprocess=PreprocessSettings(
        dpi=400,
        mode="enhanced",
        min_contour_area=150.0,
        adaptive_block_size=15,
    ),
    tesseract=TesseractSettings(oem=1, psm=6, lang="eng",
        extra="-c preserve_interword_spaces=1"),
)

# Clean digital exports rendered to images: skip the OpenCV work.
BASIC_PROFILE = OcrProfile(
    name="BASIC",
    preprocess=PreprocessSettings(dpi=300, mode="basic", deskew=False),
    tesseract=TesseractSettings(oem=1, psm=6, lang="eng"),
)

PROFILES = {p.name: p for p in (DEFAULT_PROFILE, SCAN_PROFILE, BASIC_PROFILE)}
