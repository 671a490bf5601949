# Comment handlers

import logging

from unistack.errors import NotFound, ValidationError
from unistack.ownership import verify_ownership

logger = logging.getLogger(__name__)


def _comment_body(ctx):
    body = ctx.text('body')
    if not body:
        raise ValidationError('Comment body is required')
    return body


def get_comments(ctx):
    answer_id = ctx.require_id('answerId', 'Answer')
    comments = ctx.store.list_comments(answer_id)

    return {
        'success': True,
        'count': len(comments),
        'comments': comments
    }


def add_comment(ctx):
    """Comment on an answer and return the joined comment row"""
    user_id = ctx.require_caller()
    answer_id = ctx.require_id('answerId', 'Answer')

    if not ctx.store.get_answer(answer_id):
        raise NotFound('Answer not found')

    comment_id = ctx.store.insert_comment(answer_id, user_id, _comment_body(ctx))
    logger.info('User %s commented on answer %s', user_id, answer_id)

    return {
        'success': True,
        'message': 'Comment added successfully',
        'comment': ctx.store.get_comment(comment_id)
    }


def update_comment(ctx):
    user_id = ctx.require_caller()
    comment_id = ctx.require_id('commentId', 'Comment')

    verify_ownership(
        ctx.store, 'comments', comment_id, user_id,
        not_found='Comment not found',
        forbidden='You can only edit your own comments'
    )
    body = _comment_body(ctx)

    ctx.store.update_comment(comment_id, body)

    return {
        'success': True,
        'message': 'Comment updated successfully',
        'comment': ctx.store.get_comment(comment_id)
    }


def delete_comment(ctx):
    user_id = ctx.require_caller()
    comment_id = ctx.require_id('commentId', 'Comment')

    verify_ownership(
        ctx.store, 'comments', comment_id, user_id,
        not_found='Comment not found',
        forbidden='You can only delete your own comments'
    )

    ctx.store.delete_comment(comment_id)

    return {'success': True, 'message': 'Comment deleted successfully'}
