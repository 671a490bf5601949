# Question handlers

import logging

from unistack.errors import NotFound, ValidationError
from unistack.ownership import coerce_id, verify_ownership

logger = logging.getLogger(__name__)

SORT_OPTIONS = ('newest', 'oldest', 'popular')


def _title_and_body(ctx):
    title = ctx.text('title')
    body = ctx.text('body')
    if not title or not body:
        raise ValidationError('Title and body are required')
    return title, body


def get_questions(ctx):
    """
    Questions List

    Filters are AND-combined:
    - userId: questions owned by that user
    - tag: substring of the comma-separated tags
    - search: substring of title, body or tags
    Sorted newest first by default; sort=oldest reverses that and sort=popular
    orders by answer count, then views. No pagination.
    """
    sort = ctx.text('sort') or 'newest'
    if sort not in SORT_OPTIONS:
        raise ValidationError('Sort must be newest, oldest or popular')

    owner_id = None
    if ctx.text('userId'):
        owner_id = coerce_id(ctx.get('userId'))
        if owner_id is None:
            raise ValidationError('Invalid user ID')

    questions = ctx.store.list_questions(
        owner_id=owner_id,
        tag=ctx.text('tag') or None,
        search=ctx.text('search') or None,
        sort=sort
    )

    return {
        'success': True,
        'count': len(questions),
        'questions': questions
    }


def get_question(ctx):
    """Single question with author email and answer count"""
    question = ctx.store.get_question(ctx.require_id('questionId', 'Question'))
    if not question:
        raise NotFound('Question not found')

    return {'success': True, 'question': question}


def submit_question(ctx):
    user_id = ctx.require_caller()
    title, body = _title_and_body(ctx)
    tags = ctx.text('tags')

    question_id = ctx.store.insert_question(user_id, title, body, tags)
    logger.info('User %s asked question %s', user_id, question_id)

    return {
        'success': True,
        'message': 'Question submitted successfully',
        'questionId': question_id
    }


def update_question(ctx):
    """
    Edit Question

    Logic:
    1. Guard ownership of the question
    2. Require non-empty trimmed title and body
    3. Update title, body and tags
    4. Return the refetched question
    """
    user_id = ctx.require_caller()
    question_id = ctx.require_id('questionId', 'Question')

    verify_ownership(
        ctx.store, 'questions', question_id, user_id,
        not_found='Question not found',
        forbidden='You can only edit your own questions'
    )
    title, body = _title_and_body(ctx)

    ctx.store.update_question(question_id, title, body, ctx.text('tags'))

    return {
        'success': True,
        'message': 'Question updated successfully',
        'question': ctx.store.get_question(question_id)
    }


def delete_question(ctx):
    """Delete a question together with its answers and their comments"""
    user_id = ctx.require_caller()
    question_id = ctx.require_id('questionId', 'Question')

    verify_ownership(
        ctx.store, 'questions', question_id, user_id,
        not_found='Question not found',
        forbidden='You can only delete your own questions'
    )

    ctx.store.delete_question(question_id)
    logger.info('User %s deleted question %s', user_id, question_id)

    return {'success': True, 'message': 'Question deleted successfully'}


def increment_view_count(ctx):
    # Anonymous viewers count too
    if not ctx.store.increment_views(ctx.require_id('questionId', 'Question')):
        raise NotFound('Question not found')

    return {'success': True}
