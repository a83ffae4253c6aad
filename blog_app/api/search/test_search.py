# blog_app/api/search/test_search.py
from datetime import datetime, timezone

import pytest

from blog_app.api.search.services import search_posts
from blog_app.models.post import Post, Author, PostStatus


def _post(post_id, title, excerpt='', author='Alice', categories=(), tags=()):
    return Post(
        id=post_id,
        title=title,
        excerpt=excerpt,
        content='',
        author=Author(id='a1', name=author),
        author_id='a1',
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        categories=list(categories),
        tags=list(tags),
        status=PostStatus.PUBLISHED,
    )


@pytest.fixture
def posts():
    return [
        _post('p1', 'My Travel Diary'),
        _post('p2', 'Cooking at home', excerpt='Recipes'),
        _post('p3', 'Weekend', tags=['travel', 'hiking']),
    ]


def test_query_matches_title_and_tags(posts):
    assert [post.id for post in search_posts(posts, 'travel')] == ['p1', 'p3']


def test_query_is_case_insensitive(posts):
    assert [post.id for post in search_posts(posts, 'TRAVEL')] == ['p1', 'p3']
    assert [post.id for post in search_posts(posts, 'recipes')] == ['p2']


def test_author_name_and_category_match():
    posts = [
        _post('p1', 'Hello', author='Bob Builder'),
        _post('p2', 'World', categories=['Life']),
    ]
    assert [post.id for post in search_posts(posts, 'builder')] == ['p1']
    assert [post.id for post in search_posts(posts, 'life')] == ['p2']


@pytest.mark.parametrize("query", ['', '   ', None])
def test_blank_query_returns_nothing(posts, query):
    assert search_posts(posts, query) == []


def test_no_match(posts):
    assert search_posts(posts, 'zebra') == []


def test_tag_and_capitalized_category_both_match():
    posts = [
        _post('tagged', 'Weekend notes', tags=['travel']),
        _post('categorized', 'Spring break', categories=['Travel']),
        _post('unrelated', 'Cooking at home', excerpt='Recipes'),
    ]
    assert [post.id for post in search_posts(posts, 'travel')] == ['tagged', 'categorized']


def test_search_over_normalized_non_string_record():
    odd = Post.from_firestore('odd', {'title': 2024, 'status': 'published', 'author': {'name': 404}})
    posts = [odd, _post('p1', 'travel notes')]
    assert [post.id for post in search_posts(posts, 'travel')] == ['p1']
    assert [post.id for post in search_posts(posts, '404')] == ['odd']
