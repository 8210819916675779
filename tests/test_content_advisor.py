from unittest import mock

import numpy as np
import pytest
import requests
from PIL import Image

from imagetoolkit.compression import AdvisorConfig, ContentAdvisor, ContentHint, Strategy
from imagetoolkit.compression.content_advisor import (
    API_KEY_ENV,
    classify_pixels,
    parse_model_reply,
)
from imagetoolkit.errors import AnalysisError


def remote_config(**overrides):
    values = {'enabled': True, 'endpoint': 'https://vision.example/v1', 'api_key': 'k-123'}
    values.update(overrides)
    return AdvisorConfig(**values)


def model_response(content):
    response = mock.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {'choices': [{'message': {'content': content}}]}
    return response


def test_text_image_is_quality_priority(text_image_path):
    analysis = ContentAdvisor().analyze(text_image_path)

    assert analysis['success']
    assert analysis['image_type'] == 'text'
    assert analysis['recommendation']['strategy'] == 'quality-priority'
    assert analysis['recommendation']['suggested_quality'] == 90


def test_noise_image_is_photo(noise_image_path):
    analysis = ContentAdvisor().analyze(noise_image_path)

    assert analysis['image_type'] == 'photo'
    hint = ContentHint.from_analysis(analysis)
    assert hint.strategy is Strategy.BALANCED
    assert hint.suggested_quality == 80


def test_flat_colour_blocks_are_screenshot():
    pixels = np.zeros((100, 100, 3), dtype=np.uint8)
    pixels[:50, :50] = (30, 60, 200)
    pixels[:50, 50:] = (200, 40, 40)
    pixels[50:, :50] = (20, 160, 20)
    pixels[50:, 50:] = (90, 90, 90)

    assert classify_pixels(Image.fromarray(pixels))[0] == 'screenshot'


def test_unreadable_file_is_reported_not_raised(tmp_path):
    bogus = tmp_path / 'bogus.jpg'
    bogus.write_text("definitely not a jpeg")

    analysis = ContentAdvisor().analyze(bogus)

    assert analysis['success'] is False
    assert analysis['recommendation']['strategy'] == 'balanced'
    assert analysis['recommendation']['suggested_quality'] == 80
    assert ContentHint.from_analysis(analysis) is None


def test_remote_classification(small_image_path):
    reply = 'Sure! {"imageType": "portrait", "confidence": 0.9, "strategy": "quality-priority", ' \
            '"suggestedQuality": 88, "reason": "face detail"}'

    with mock.patch('imagetoolkit.compression.content_advisor.requests.post',
                    return_value=model_response(reply)) as post:
        analysis = ContentAdvisor(remote_config()).analyze(small_image_path)

    assert analysis['image_type'] == 'portrait'
    assert analysis['recommendation']['suggested_quality'] == 88

    url = post.call_args.args[0]
    kwargs = post.call_args.kwargs
    assert url == 'https://vision.example/v1/chat/completions'
    assert kwargs['headers']['Authorization'] == 'Bearer k-123'
    image_part = kwargs['json']['messages'][0]['content'][0]
    assert image_part['image_url']['url'].startswith('data:image/jpeg;base64,')


def test_remote_uses_session_when_given(small_image_path):
    session = mock.Mock()
    session.post.return_value = model_response('{"strategy": "size-priority", "suggestedQuality": 60}')

    analysis = ContentAdvisor(remote_config(), session=session).analyze(small_image_path)

    assert session.post.called
    assert analysis['recommendation']['strategy'] == 'size-priority'


def test_remote_failure_falls_back(small_image_path):
    with mock.patch('imagetoolkit.compression.content_advisor.requests.post',
                    side_effect=requests.ConnectionError("offline")):
        analysis = ContentAdvisor(remote_config()).analyze(small_image_path)

    assert analysis['success'] is False
    assert 'offline' in analysis['error']


def test_bad_response_shape_falls_back(small_image_path):
    response = mock.Mock()
    response.json.return_value = {'choices': []}

    with mock.patch('imagetoolkit.compression.content_advisor.requests.post', return_value=response):
        analysis = ContentAdvisor(remote_config()).analyze(small_image_path)

    assert analysis['success'] is False


def test_remote_requires_api_key(monkeypatch, text_image_path):
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    config = remote_config(api_key='')
    assert not config.is_configured()

    with mock.patch('imagetoolkit.compression.content_advisor.requests.post') as post:
        analysis = ContentAdvisor(config).analyze(text_image_path)
    assert not post.called
    assert analysis['image_type'] == 'text'

    monkeypatch.setenv(API_KEY_ENV, 'from-env')
    assert config.is_configured()
    assert config.resolved_api_key() == 'from-env'


def test_parse_model_reply_defaults_and_clamping():
    parsed = parse_model_reply('{"suggestedQuality": 140, "strategy": "fastest"}')

    assert parsed['image_type'] == 'unknown'
    assert parsed['recommendation']['suggested_quality'] == 100
    assert parsed['recommendation']['strategy'] == 'balanced'
    assert parsed['confidence'] == pytest.approx(0.8)


@pytest.mark.parametrize("content", ["no json here", "{not: valid}", "", None])
def test_parse_model_reply_rejects_garbage(content):
    with pytest.raises(AnalysisError):
        parse_model_reply(content)


def test_infinite_quality_in_reply_uses_default(small_image_path):
    with mock.patch('imagetoolkit.compression.content_advisor.requests.post',
                    return_value=model_response('{"suggestedQuality": Infinity}')):
        analysis = ContentAdvisor(remote_config()).analyze(small_image_path)

    assert analysis['recommendation']['suggested_quality'] == 80
    assert ContentHint.from_analysis(analysis).suggested_quality == 80
