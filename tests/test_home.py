from __future__ import annotations


def test_root_is_home_index(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "Welcome to Contoso University" in response.text
    assert response.headers["content-type"].startswith("text/html")


def test_home_index_explicit_path(client):
    assert client.get("/Home/Index").text == client.get("/").text


def test_about_groups_students_by_enrollment_date(client):
    response = client.get("/Home/About")
    assert response.status_code == 200
    assert "2001-09-01" in response.text
    assert "2005-09-01" in response.text


def test_privacy(client):
    assert "Privacy Policy" in client.get("/home/privacy").text


def test_layout_links_are_generated(client):
    text = client.get("/").text
    assert 'href="/Students"' in text
    assert 'href="/Home/About"' in text
    assert 'href="/css/site.css"' in text


def test_head_request(client):
    assert client.head("/Home/Privacy").status_code == 200
