# Registration, login and bearer tokens

import logging
import re
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from unistack.errors import NotFound, Unauthenticated, ValidationError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

# bcrypt only reads the first 72 bytes and newer releases refuse longer input
MAX_PASSWORD_BYTES = 72


# Utility functions
def validate_email(email):
    return EMAIL_PATTERN.match(email) is not None


def has_institutional_domain(email, domain):
    return email.lower().endswith('@' + domain.lower())


def password_too_long(password):
    return len(password.encode('utf-8')) > MAX_PASSWORD_BYTES


def hash_password(password):
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def check_password(password, password_hash):
    if password_too_long(password):
        return False
    return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))


def issue_token(user, config):
    return jwt.encode({
        'user_id': user['id'],
        'email': user['email'],
        'exp': datetime.now(timezone.utc) + timedelta(days=config['TOKEN_TTL_DAYS'])
    }, config['SECRET_KEY'], algorithm='HS256')


def decode_token(token, config):
    """Return the user id carried by a bearer token"""
    if token.startswith('Bearer '):
        token = token[7:]

    try:
        data = jwt.decode(token, config['SECRET_KEY'], algorithms=['HS256'])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated('Token has expired')
    except jwt.InvalidTokenError:
        raise Unauthenticated('Invalid token')

    if 'user_id' not in data:
        raise Unauthenticated('Invalid token')
    return data['user_id']


def _public_user(user):
    return {'id': user['id'], 'email': user['email']}


# ===========================================
# Auth handlers
# ===========================================

def register(ctx):
    """
    User Registration

    Logic:
    1. Validate email format and institutional domain
    2. Validate password length, bcrypt caps it at 72 bytes
    3. Hash password using bcrypt
    4. Insert user, a duplicate email is a Conflict
    5. Return user id/email and a bearer token
    """
    email = ctx.text('email').lower()
    password = str(ctx.get('password') or '')
    domain = ctx.config['EMAIL_DOMAIN']
    min_length = ctx.config['MIN_PASSWORD_LENGTH']

    if not validate_email(email):
        raise ValidationError('Invalid email format')

    if not has_institutional_domain(email, domain):
        raise ValidationError(f'Only @{domain} email addresses are allowed')

    if len(password) < min_length:
        raise ValidationError(f'Password must be at least {min_length} characters long')

    if password_too_long(password):
        raise ValidationError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes long')

    user = ctx.store.create_user(email, hash_password(password))
    logger.info('Registered user %s', user['id'])

    return {
        'success': True,
        'message': 'User registered successfully',
        'user': _public_user(user),
        'token': issue_token(user, ctx.config)
    }


def login(ctx):
    """User login, returns the identity and a bearer token"""
    email = ctx.text('email').lower()
    password = str(ctx.get('password') or '')

    if not validate_email(email):
        raise ValidationError('Invalid email format')

    user = ctx.store.find_user_by_email(email)
    if not user:
        raise NotFound('User not found')

    if not check_password(password, user['password']):
        raise ValidationError('Invalid password')

    return {
        'success': True,
        'user': _public_user(user),
        'token': issue_token(user, ctx.config)
    }
