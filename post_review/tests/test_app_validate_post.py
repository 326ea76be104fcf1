import json

import pytest
from fastapi.testclient import TestClient

from post_review.app import app
from post_review.persistence import RelayResult

FORM = {
    'brand': 'Toyota',
    'model': 'Corolla',
    'description': 'Well maintained, excellent condition',
    'tags': json.dumps(['sedan', 'economical', 'reliable']),
}

IMAGES = [
    ('image', ('car1.jpg', b'fake-image-data', 'image/jpeg')),
    ('image', ('car2.jpg', b'fake-image-data', 'image/jpeg')),
]


@pytest.fixture
def client(monkeypatch, service_config, fake_store):
    monkeypatch.setattr('post_review.app.CONFIG', service_config)
    monkeypatch.setattr('post_review.flows.get_media_store', lambda *_args, **_kwargs: fake_store)
    return TestClient(app)


def _leftover_uploads(service_config):
    if not service_config.upload_dir.exists():
        return []
    return list(service_config.upload_dir.iterdir())


def test_valid_post_is_created_and_files_removed(client, monkeypatch, service_config, fake_store):
    relayed = {}

    def _fake_relay(document, authorization, _config=None):
        relayed.update(document=document, authorization=authorization)
        return RelayResult(ok=True, status_code=201, payload={'id': 1, 'brand': 'Toyota'})

    monkeypatch.setattr(
        'post_review.flows.invoke_delegate',
        lambda *_args, **_kwargs: '{"success": true, "acceptabilityScore": 85, "info": "Post valide"}',
    )
    monkeypatch.setattr('post_review.flows.relay_post', _fake_relay)

    response = client.post(
        '/validatePost',
        data=FORM,
        files=IMAGES,
        headers={'Authorization': 'Bearer test-token'},
    )

    assert response.status_code == 201
    assert response.json() == {'success': True, 'info': 'Post valide', 'post': {'id': 1, 'brand': 'Toyota'}}
    assert relayed['authorization'] == 'Bearer test-token'
    assert relayed['document']['images'] == ['https://cloudinary.com/image.jpg'] * 2
    assert len(fake_store.calls) == 2
    assert _leftover_uploads(service_config) == []


def test_missing_brand_is_rejected_without_model_call(client, monkeypatch, service_config):
    calls = []
    monkeypatch.setattr('post_review.flows.invoke_delegate', lambda *args, **_kwargs: calls.append(args))

    response = client.post('/validatePost', data={k: v for k, v in FORM.items() if k != 'brand'}, files=IMAGES)

    assert response.status_code == 400
    assert response.json() == {
        'success': False,
        'error': 'Required fields are missing or no images were provided.',
    }
    assert calls == []
    assert _leftover_uploads(service_config) == []


def test_post_without_images_is_rejected(client):
    response = client.post('/validatePost', data=FORM)

    assert response.status_code == 400
    assert response.json()['success'] is False


def test_persistence_failure_is_reported(client, monkeypatch, service_config):
    monkeypatch.setattr(
        'post_review.flows.invoke_delegate',
        lambda *_args, **_kwargs: '{"success": true, "acceptabilityScore": 85, "info": "Post valide"}',
    )
    monkeypatch.setattr(
        'post_review.flows.relay_post',
        lambda *_args, **_kwargs: RelayResult(ok=False, status_code=500, payload={'error': 'Database error'}),
    )

    response = client.post('/validatePost', data=FORM, files=IMAGES)

    assert response.status_code == 500
    assert response.json() == {
        'success': False,
        'error': 'validation succeeded but persistence failed',
        'details': {'error': 'Database error'},
    }
    assert _leftover_uploads(service_config) == []


def test_rejected_post_returns_model_verdict(client, monkeypatch):
    verdict = {'success': False, 'acceptabilityScore': 60, 'errors': ['Unknown brand', 'Inappropriate description']}
    monkeypatch.setattr('post_review.flows.invoke_delegate', lambda *_args, **_kwargs: json.dumps(verdict))

    response = client.post('/validatePost', data=FORM, files=IMAGES)

    assert response.status_code == 400
    assert response.json() == verdict


def test_non_json_reply_is_server_error(client, monkeypatch, service_config):
    monkeypatch.setattr('post_review.flows.invoke_delegate', lambda *_args, **_kwargs: 'Invalid non-JSON reply')

    response = client.post('/validatePost', data=FORM, files=IMAGES)

    assert response.status_code == 500
    payload = response.json()
    assert payload['success'] is False
    assert payload['error'] == 'Server error'
    assert _leftover_uploads(service_config) == []


def test_comma_separated_tags_are_accepted(client, monkeypatch):
    prompts = []

    def _fake_delegate(delegate_request, _config=None):
        prompts.append(delegate_request.prompt)
        return '{"success": false, "acceptabilityScore": 20}'

    monkeypatch.setattr('post_review.flows.invoke_delegate', _fake_delegate)

    client.post('/validatePost', data=dict(FORM, tags='sedan, économique'), files=IMAGES)

    assert 'Tags (JSON): ["sedan","économique"]' in prompts[0]


def test_deeply_nested_tags_are_split_not_crashed(client, monkeypatch):
    monkeypatch.setattr(
        'post_review.flows.invoke_delegate',
        lambda *_args, **_kwargs: '{"success": false, "acceptabilityScore": 10}',
    )

    response = client.post('/validatePost', data=dict(FORM, tags='[' * 100000), files=IMAGES)

    assert response.status_code == 400
    assert response.json() == {'success': False, 'acceptabilityScore': 10}
