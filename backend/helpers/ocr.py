"""
Image text recognition.

Pillow preprocessing (resize, greyscale, normalize, sharpen) followed by
Tesseract. Results are always returned as a Markdown report, including on
failure.
"""

import logging
import os

import pytesseract
from PIL import Image, ImageFilter, ImageOps

logger = logging.getLogger(__name__)

OCR_LANG = os.getenv("OCR_LANG", "chi_tra+chi_sim+eng")
OCR_MAX_HEIGHT = 2000
MIN_OCR_CHARS = 10


def _preprocess_image(image_path: str, max_height: int = OCR_MAX_HEIGHT) -> Image.Image:
    """
    Prepare an image for recognition.

    - Scale down to max_height (keeps ratio, never enlarges)
    - Greyscale
    - Stretch contrast
    - Sharpen
    """
    with Image.open(image_path) as src:
        img = src.convert("RGB")

    if img.height > max_height:
        width = max(1, round(img.width * max_height / img.height))
        img = img.resize((width, max_height), Image.Resampling.LANCZOS)
        logger.info(f"[OCR] Resized to {img.size}")

    img = ImageOps.grayscale(img)
    img = ImageOps.autocontrast(img)
    img = img.filter(ImageFilter.SHARPEN)
    return img


def _success_report(original_name: str, text: str, lang: str) -> str:
    return f"""# Image OCR Result

## Image Information
- File name: {original_name}
- Engine: Tesseract
- Languages: {lang}

## Recognized Text
{text}

## Additional Information
- Text length: {len(text)} characters
- Status: success
- Tip: if the result looks wrong, use a sharper image with good text contrast"""


def _empty_report(original_name: str) -> str:
    return f"""# Image OCR Result

## Image Information
- File name: {original_name}
- Engine: Tesseract

## Status
No clear text was detected. Possible causes:
- The image contains no text
- The text is too small or blurry
- Handwriting that is hard to recognize
- Decorative or unusual fonts

## Tips
- Use a sharp image
- Keep high contrast between text and background
- Avoid skewed or distorted text"""


def _failure_report(original_name: str, error: Exception) -> str:
    return f"""# Image OCR Failed

## Image Information
- File name: {original_name}
- Error: {error}

## Notes
This is an image file; text recognition could not process it."""


def extract_text_from_image(image_path: str, original_name: str, lang: str = None) -> str:
    """OCR an image file. Never raises; failures come back as a report."""
    lang = lang or OCR_LANG
    try:
        logger.info(f"[OCR] Start: {original_name}")
        img = _preprocess_image(image_path)
        text = pytesseract.image_to_string(img, lang=lang).strip()
    except Exception as e:
        logger.error(f"[OCR] Failed for {original_name}: {e}")
        return _failure_report(original_name, e)

    if len(text) > MIN_OCR_CHARS:
        logger.info(f"[OCR] Done: {original_name} - {len(text)} chars")
        return _success_report(original_name, text, lang)
    logger.info(f"[OCR] No text detected: {original_name}")
    return _empty_report(original_name)
