from fastapi.testclient import TestClient

from neurolearn import main


def test_health(client):
	r = client.get("/health")
	assert r.status_code == 200
	assert r.json() == {"status": "ok", "gemini_configured": True}


def test_cleanup_task_lives_for_the_app_lifetime():
	with TestClient(main.app):
		task = main._cleanup_task
		assert task is not None
		assert not task.done()
	assert main._cleanup_task is None
