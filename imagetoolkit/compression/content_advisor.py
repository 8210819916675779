"""Content advisor recommending a compression strategy for an image.

Classifies the image content (text, screenshot, photo...) and suggests a
strategy plus JPEG quality. Uses a vision-language model behind an
OpenAI-compatible ``chat/completions`` endpoint when configured, and a local
colour-statistics heuristic otherwise.

``analyze`` never raises: failures come back as ``success: False`` with the
default recommendation, which ``ContentHint.from_analysis`` turns into "no
hint".
"""

import base64
import json
import os
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import requests
from PIL import Image

from ..errors import AnalysisError
from ..log import get_logger
from .result import Strategy, clamp_quality

logger = get_logger("advisor")

API_KEY_ENV = "IMAGETOOLKIT_VISION_API_KEY"

DEFAULT_IMAGE_TYPE = "unknown"
DEFAULT_CONFIDENCE = 0.8
DEFAULT_QUALITY = 80

# Longest edge of the image sent to the model
UPLOAD_MAX_DIMENSION = 1024

# Heuristic thresholds (computed on a ~10k pixel sample)
HEURISTIC_SAMPLE_PIXELS = 10000
TEXT_MAX_COLORS = 256
TEXT_MIN_BACKGROUND = 0.5
SCREENSHOT_MAX_COLORS = 4096

CLASSIFICATION_PROMPT = """Classify the content of this image as one of:
portrait, landscape, text, product, screenshot, other.
Then recommend a JPEG compression quality (integer 0-100).

Reply with a JSON object containing:
{
  "imageType": "image type",
  "confidence": confidence between 0.0 and 1.0,
  "strategy": "quality-priority | balanced | size-priority",
  "suggestedQuality": recommended quality (0-100),
  "reason": "why this quality",
  "tips": "compression advice"
}

Guidelines:
- portrait: quality 85-90, keep facial detail
- landscape: quality 70-80, tolerates compression
- text: quality 90-95, keep glyph edges sharp
- product: quality 75-85, balance detail and size
- screenshot: quality 80-85, keep text and UI detail
- other: quality 80, balanced"""

# Recommendations of the local heuristic, keyed by detected type
HEURISTIC_RECOMMENDATIONS = {
    'text': {
        'strategy': Strategy.QUALITY_PRIORITY.value,
        'suggested_quality': 90,
        'reason': "Mostly text on a plain background, keep edges sharp",
        'tips': "Quality 90-95 keeps glyphs readable",
    },
    'screenshot': {
        'strategy': Strategy.BALANCED.value,
        'suggested_quality': 85,
        'reason': "Flat colours typical of a screenshot or UI capture",
        'tips': "Quality 80-85 preserves text and UI detail",
    },
    'photo': {
        'strategy': Strategy.BALANCED.value,
        'suggested_quality': 80,
        'reason': "Photographic content tolerates moderate compression",
        'tips': "Quality 70-85 balances detail and size",
    },
}


@dataclass
class AdvisorConfig:
    """Configuration for the vision classifier.

    Attributes:
        enabled: Use the remote model (otherwise local heuristic)
        endpoint: Base URL of an OpenAI-compatible API
        model: Vision model name
        api_key: API key (falls back to IMAGETOOLKIT_VISION_API_KEY)
        timeout_seconds: HTTP timeout
    """
    enabled: bool = False
    endpoint: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    api_key: str = ""
    timeout_seconds: float = 30

    def resolved_api_key(self) -> str:
        return self.api_key or os.environ.get(API_KEY_ENV, "")

    def is_configured(self) -> bool:
        """True if the remote classifier can be called."""
        return self.enabled and bool(self.endpoint) and bool(self.resolved_api_key())


def default_recommendation(reason: str) -> Dict[str, Any]:
    return {
        'strategy': Strategy.BALANCED.value,
        'suggested_quality': DEFAULT_QUALITY,
        'reason': reason,
        'tips': "",
    }


class ContentAdvisor:
    """Suggests a compression strategy based on image content."""

    def __init__(self, config: Optional[AdvisorConfig] = None, session: Optional[requests.Session] = None):
        """Initialize advisor.

        Args:
            config: Classifier configuration
            session: Optional requests session (for connection reuse)
        """
        self.config = config or AdvisorConfig()
        self.session = session

    def analyze(self, image_path: Path) -> Dict[str, Any]:
        """Classify an image and recommend a strategy.

        Args:
            image_path: Path to the image file

        Returns:
            Dict ``{success, image_type, confidence, recommendation}``
        """
        try:
            if self.config.is_configured():
                analysis = self._analyze_remote(Path(image_path))
            else:
                analysis = self._analyze_local(Path(image_path))
        except AnalysisError as e:
            logger.warning("Image analysis failed, using default strategy: %s", e)
            return {
                'success': False,
                'error': str(e),
                'image_type': DEFAULT_IMAGE_TYPE,
                'recommendation': default_recommendation("Analysis failed, using the balanced default"),
            }

        logger.info(
            "Classified %s as %s (%s, quality %d)",
            image_path, analysis['image_type'],
            analysis['recommendation']['strategy'],
            analysis['recommendation']['suggested_quality'],
        )
        return analysis

    def _analyze_local(self, image_path: Path) -> Dict[str, Any]:
        try:
            with Image.open(image_path) as img:
                image_type, confidence = classify_pixels(img)
        except OSError as e:
            raise AnalysisError(f"Cannot read {image_path}: {e}") from e

        return {
            'success': True,
            'image_type': image_type,
            'confidence': confidence,
            'recommendation': dict(HEURISTIC_RECOMMENDATIONS[image_type]),
        }

    def _analyze_remote(self, image_path: Path) -> Dict[str, Any]:
        data_url = self._encode_image(image_path)
        payload = {
            'model': self.config.model,
            'messages': [
                {
                    'role': 'user',
                    'content': [
                        {'type': 'image_url', 'image_url': {'url': data_url}},
                        {'type': 'text', 'text': CLASSIFICATION_PROMPT},
                    ],
                }
            ],
            'stream': False,
        }
        headers = {'Authorization': f"Bearer {self.config.resolved_api_key()}"}
        url = self.config.endpoint.rstrip('/') + '/chat/completions'

        post = self.session.post if self.session is not None else requests.post
        try:
            response = post(url, json=payload, headers=headers, timeout=self.config.timeout_seconds)
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise AnalysisError(f"Vision request failed: {e}") from e

        try:
            content = body['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError) as e:
            raise AnalysisError(f"Unexpected response shape: {e}") from e

        return parse_model_reply(content)

    def _encode_image(self, image_path: Path) -> str:
        """Downscale and encode the image as a JPEG data URL."""
        try:
            with Image.open(image_path) as img:
                img = img.convert('RGB')
                img.thumbnail((UPLOAD_MAX_DIMENSION, UPLOAD_MAX_DIMENSION), Image.Resampling.LANCZOS)
                buffer = BytesIO()
                img.save(buffer, format='JPEG', quality=85)
        except OSError as e:
            raise AnalysisError(f"Cannot read {image_path}: {e}") from e

        encoded = base64.b64encode(buffer.getvalue()).decode('ascii')
        return f"data:image/jpeg;base64,{encoded}"


def parse_model_reply(content: str) -> Dict[str, Any]:
    """Extract and normalise the JSON recommendation from a model reply.

    Missing fields are filled with defaults and the quality is clamped.

    Raises:
        AnalysisError: If no JSON object can be parsed
    """
    match = re.search(r"\{[\s\S]*\}", content or "")
    if not match:
        raise AnalysisError("No JSON object in model reply")

    try:
        result = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AnalysisError(f"Invalid JSON in model reply: {e}") from e
    if not isinstance(result, dict):
        raise AnalysisError("Model reply JSON is not an object")

    try:
        quality = int(result.get('suggestedQuality', DEFAULT_QUALITY))
    except (TypeError, ValueError, OverflowError):
        quality = DEFAULT_QUALITY

    try:
        confidence = float(result.get('confidence') or DEFAULT_CONFIDENCE)
    except (TypeError, ValueError, OverflowError):
        confidence = DEFAULT_CONFIDENCE

    return {
        'success': True,
        'image_type': result.get('imageType') or DEFAULT_IMAGE_TYPE,
        'confidence': confidence,
        'recommendation': {
            'strategy': Strategy.parse(result.get('strategy')).value,
            'suggested_quality': clamp_quality(quality),
            'reason': result.get('reason') or "Analysis complete",
            'tips': result.get('tips') or "",
        },
    }


def classify_pixels(img: Image.Image) -> tuple:
    """Classify an image from colour statistics.

    Few colours on a mostly light background reads as text, few colours
    otherwise as a screenshot, anything richer as a photo.

    Returns:
        (image_type, confidence)
    """
    if img.mode != 'RGB':
        img = img.convert('RGB')

    width, height = img.size
    total_pixels = width * height
    if total_pixels > HEURISTIC_SAMPLE_PIXELS:
        scale = (HEURISTIC_SAMPLE_PIXELS / total_pixels) ** 0.5
        img = img.resize(
            (max(1, int(width * scale)), max(1, int(height * scale))),
            Image.Resampling.NEAREST,
        )

    pixels = np.asarray(img, dtype=np.uint32).reshape(-1, 3)
    packed = (pixels[:, 0] << 16) | (pixels[:, 1] << 8) | pixels[:, 2]
    unique_colors = len(np.unique(packed))

    luminance = pixels @ np.array([299, 587, 114], dtype=np.uint32) // 1000
    background = float(np.mean(luminance > 230))

    if unique_colors <= TEXT_MAX_COLORS and background >= TEXT_MIN_BACKGROUND:
        return 'text', 0.7
    if unique_colors <= SCREENSHOT_MAX_COLORS:
        return 'screenshot', 0.6
    return 'photo', 0.6
