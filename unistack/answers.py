# Answer handlers, including accepting an answer

import logging

from unistack.errors import Forbidden, NotFound, ValidationError
from unistack.ownership import coerce_id, verify_ownership

logger = logging.getLogger(__name__)


def _answer_body(ctx):
    body = ctx.text('body')
    if not body:
        raise ValidationError('Answer body is required')
    return body


def get_answers(ctx):
    """Answers of a question, accepted first, then oldest first"""
    question_id = ctx.require_id('questionId', 'Question')
    answers = ctx.store.list_answers(question_id)

    return {
        'success': True,
        'count': len(answers),
        'answers': answers
    }


def submit_answer(ctx):
    """
    Post Answer

    Logic:
    1. Require the caller identity
    2. Check that the question exists
    3. Require a non-empty body
    4. Insert the answer and bump the question's answer_count
    5. Return the joined answer row
    """
    user_id = ctx.require_caller()
    question_id = ctx.require_id('questionId', 'Question')

    if not ctx.store.get_question(question_id):
        raise NotFound('Question not found')

    body = _answer_body(ctx)
    answer_id = ctx.store.insert_answer(question_id, user_id, body)
    logger.info('User %s answered question %s with answer %s', user_id, question_id, answer_id)

    return {
        'success': True,
        'message': 'Answer posted successfully',
        'answer': ctx.store.get_answer(answer_id)
    }


def update_answer(ctx):
    user_id = ctx.require_caller()
    answer_id = ctx.require_id('answerId', 'Answer')

    verify_ownership(
        ctx.store, 'answers', answer_id, user_id,
        not_found='Answer not found',
        forbidden='You can only edit your own answers'
    )
    body = _answer_body(ctx)

    ctx.store.update_answer(answer_id, body)

    return {
        'success': True,
        'message': 'Answer updated successfully',
        'answer': ctx.store.get_answer(answer_id)
    }


def delete_answer(ctx):
    """Delete an answer and its comments; answer_count never drops below zero"""
    user_id = ctx.require_caller()
    answer_id = ctx.require_id('answerId', 'Answer')

    verify_ownership(
        ctx.store, 'answers', answer_id, user_id,
        not_found='Answer not found',
        forbidden='You can only delete your own answers'
    )

    ctx.store.delete_answer(answer_id)
    logger.info('User %s deleted answer %s', user_id, answer_id)

    return {'success': True, 'message': 'Answer deleted successfully'}


def accept_answer(ctx):
    """
    Accept Answer

    Only the owner of the parent question may accept. Clearing every other
    answer of the question, flagging the target and setting the question's
    has_accepted_answer happen as one transition in the store.
    """
    user_id = ctx.require_caller()
    answer_id = ctx.require_id('answerId', 'Answer')

    answer = ctx.store.get_answer(answer_id)
    if not answer:
        raise NotFound('Answer not found')

    question_id = answer['question_id']
    question_owner = ctx.store.get_owner_id('questions', question_id)
    if question_owner is None:
        raise NotFound('Question not found')

    if coerce_id(question_owner) != user_id:
        raise Forbidden('Only the question owner can accept answers')

    if not answer['is_accepted']:
        ctx.store.accept_answer(answer_id, question_id)
        logger.info('Answer %s accepted for question %s', answer_id, question_id)

    return {
        'success': True,
        'message': 'Answer accepted successfully',
        'answer': ctx.store.get_answer(answer_id)
    }
