# blog_app/models/test_models.py
from datetime import datetime, timezone

import pytest

from blog_app.models.comment import Comment
from blog_app.models.post import Post, PostStatus, Author, UNTITLED_POST, UNKNOWN_AUTHOR_NAME, UNKNOWN_AUTHOR_ID
from blog_app.models.user import UserProfile

WRITTEN_AT = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_post_from_complete_document():
    data = {
        'title': '제주도 여행기',
        'excerpt': '바다',
        'content': '<p>본문</p>',
        'author': {'id': 'u1', 'name': 'Alice', 'avatarUrl': 'https://example.com/a.png'},
        'authorId': 'u1',
        'timestamp': WRITTEN_AT,
        'categories': ['travel'],
        'tags': ['jeju', 'sea'],
        'status': 'published',
        'imageUrl': 'https://example.com/cover.png',
        'commentCount': 3,
    }
    post = Post.from_firestore('p1', data)

    assert post.id == 'p1'
    assert post.author == Author(id='u1', name='Alice', avatar_url='https://example.com/a.png')
    assert post.timestamp == WRITTEN_AT
    assert post.status is PostStatus.PUBLISHED
    assert post.is_published
    assert post.comment_count == 3
    assert post.last_modified_at is None


def test_post_from_empty_document_uses_defaults():
    post = Post.from_firestore('p2', {})

    assert post.title == UNTITLED_POST
    assert post.excerpt == ''
    assert post.content == ''
    assert post.author.name == UNKNOWN_AUTHOR_NAME
    assert post.author_id == UNKNOWN_AUTHOR_ID
    assert post.categories == []
    assert post.tags == []
    assert post.status is PostStatus.DRAFT
    assert post.image_url is None
    assert post.comment_count == 0
    assert post.timestamp.tzinfo is not None


@pytest.mark.parametrize("data", [
    None,
    "not a mapping",
    {'author': 'Alice', 'categories': 'travel', 'tags': None, 'commentCount': 'many'},
    {'status': 'archived', 'timestamp': {'nope': 1}, 'commentCount': True},
    {'lastModifiedAt': 'garbage', 'timestamp': []},
    {'title': 2024, 'author': {'name': 404}},
])
def test_post_normalizer_never_raises(data):
    post = Post.from_firestore('weird', data)
    assert post.id == 'weird'
    assert post.status in (PostStatus.DRAFT, PostStatus.PUBLISHED)
    assert isinstance(post.categories, list)
    assert isinstance(post.comment_count, int)
    assert all(isinstance(text, str) for text in (post.title, post.excerpt, post.content, post.author.id, post.author.name))


def test_post_invalid_status_becomes_draft(caplog):
    post = Post.from_firestore('p3', {'status': 'archived', 'timestamp': WRITTEN_AT})
    assert post.status is PostStatus.DRAFT
    assert 'archived' in caplog.text


def test_author_falls_back_to_author_id():
    post = Post.from_firestore('p4', {'authorId': 'u9', 'timestamp': WRITTEN_AT})
    assert post.author.id == 'u9'
    assert post.author_id == 'u9'


def test_author_snapshot_omits_empty_avatar():
    assert Author(id='u1', name='Alice').to_firestore() == {'id': 'u1', 'name': 'Alice'}


def test_comment_defaults_to_anonymous():
    comment = Comment.from_firestore('c1', 'p1', {'content': '좋은 글이네요', 'timestamp': WRITTEN_AT})
    assert comment.user.name == 'Anonymous'
    assert comment.post_id == 'p1'
    assert comment.timestamp == WRITTEN_AT


def test_comment_user_id_fallback():
    comment = Comment.from_firestore('c2', 'p1', {'userId': 'u2', 'user': {'name': 'Bob'}})
    assert comment.user.id == 'u2'
    assert comment.user.name == 'Bob'
    assert comment.content == ''


def test_user_profile_to_author():
    profile = UserProfile.from_firestore('u1', {'name': 'Alice', 'avatarUrl': 'https://example.com/a.png'})
    assert profile.bio == ''
    assert profile.to_author() == Author(id='u1', name='Alice', avatar_url='https://example.com/a.png')


def test_non_string_fields_are_converted_to_text():
    post = Post.from_firestore('p5', {'title': 2024, 'excerpt': 3.5, 'author': {'id': 7, 'name': 404}, 'authorId': 7})
    assert post.title == '2024'
    assert post.excerpt == '3.5'
    assert post.author == Author(id='7', name='404')
    assert post.author_id == '7'
