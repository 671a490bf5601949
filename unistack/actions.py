# Action router
# Maps every action name to exactly one handler and renders the JSON envelope.

import enum
import logging

from unistack import answers, auth, comments, questions
from unistack.context import ActionContext
from unistack.errors import ActionError, InternalError, InvalidAction, Unauthenticated

logger = logging.getLogger(__name__)


class Action(enum.Enum):
    LOGIN = 'login'
    REGISTER = 'register'
    GET_QUESTIONS = 'getQuestions'
    GET_QUESTION = 'getQuestion'
    SUBMIT_QUESTION = 'submitQuestion'
    UPDATE_QUESTION = 'updateQuestion'
    DELETE_QUESTION = 'deleteQuestion'
    INCREMENT_VIEW_COUNT = 'incrementViewCount'
    GET_ANSWERS = 'getAnswers'
    SUBMIT_ANSWER = 'submitAnswer'
    UPDATE_ANSWER = 'updateAnswer'
    DELETE_ANSWER = 'deleteAnswer'
    ACCEPT_ANSWER = 'acceptAnswer'
    GET_COMMENTS = 'getComments'
    ADD_COMMENT = 'addComment'
    UPDATE_COMMENT = 'updateComment'
    DELETE_COMMENT = 'deleteComment'


HANDLERS = {
    Action.LOGIN: auth.login,
    Action.REGISTER: auth.register,
    Action.GET_QUESTIONS: questions.get_questions,
    Action.GET_QUESTION: questions.get_question,
    Action.SUBMIT_QUESTION: questions.submit_question,
    Action.UPDATE_QUESTION: questions.update_question,
    Action.DELETE_QUESTION: questions.delete_question,
    Action.INCREMENT_VIEW_COUNT: questions.increment_view_count,
    Action.GET_ANSWERS: answers.get_answers,
    Action.SUBMIT_ANSWER: answers.submit_answer,
    Action.UPDATE_ANSWER: answers.update_answer,
    Action.DELETE_ANSWER: answers.delete_answer,
    Action.ACCEPT_ANSWER: answers.accept_answer,
    Action.GET_COMMENTS: comments.get_comments,
    Action.ADD_COMMENT: comments.add_comment,
    Action.UPDATE_COMMENT: comments.update_comment,
    Action.DELETE_COMMENT: comments.delete_comment,
}

# Served from query strings as well as JSON bodies
READ_ACTIONS = frozenset({
    Action.GET_QUESTIONS,
    Action.GET_QUESTION,
    Action.GET_ANSWERS,
    Action.GET_COMMENTS,
})

AUTH_ACTIONS = frozenset({Action.LOGIN, Action.REGISTER})

# Anonymous viewers count, so no caller identity is resolved
ANONYMOUS_WRITES = frozenset({Action.INCREMENT_VIEW_COUNT})


def resolve_action(name, method):
    """Return the Action for name, or raise InvalidAction"""
    if not name:
        raise InvalidAction('No action specified')

    try:
        action = Action(name)
    except ValueError:
        raise InvalidAction('Invalid action')

    if method == 'GET' and action not in READ_ACTIONS:
        raise InvalidAction('Invalid action')

    return action


def resolve_caller(store, payload, authorization, config):
    """
    Caller identity for a write action.

    A bearer token is authoritative and overrides any userId in the payload;
    its user must still exist.
    Without a token the payload userId is trusted unless REQUIRE_TOKEN is set.
    """
    if authorization:
        user_id = auth.decode_token(authorization, config)
        if not store.user_exists(user_id):
            raise Unauthenticated('User not found')
        return user_id

    if config['REQUIRE_TOKEN']:
        raise Unauthenticated('Token is missing')

    return payload.get('userId')


def dispatch(store, config, method, payload, authorization=None):
    """
    Route one request to its handler and return the response envelope.

    Every outcome is a single JSON-ready dict: handler results pass through,
    ActionError becomes {success: false, message, error}, and anything else
    is logged and reported as an internal error.
    """
    payload = payload if isinstance(payload, dict) else {}

    try:
        action = resolve_action(payload.get('action'), method)
        logger.debug('Dispatching %s', action.value)

        caller_id = None
        if action not in READ_ACTIONS and action not in AUTH_ACTIONS and action not in ANONYMOUS_WRITES:
            caller_id = resolve_caller(store, payload, authorization, config)

        ctx = ActionContext(store, config, payload, caller_id=caller_id)
        return HANDLERS[action](ctx)

    except ActionError as e:
        logger.info('Action %s failed: %s (%s)', payload.get('action'), e.message, e.kind)
        return e.to_dict()

    except Exception:
        logger.exception('Unhandled error in action %s', payload.get('action'))
        return InternalError().to_dict()
