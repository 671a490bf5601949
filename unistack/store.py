# Relational store for UniStack
# Every SQL statement issued by the service lives here.
# Multi-statement writes (answer counters, accept answer, cascading deletes)
# run inside a single transaction.

import logging

from psycopg2.errors import UniqueViolation

from unistack.db import get_db_connection, transaction
from unistack.errors import Conflict

logger = logging.getLogger(__name__)

OWNED_TABLES = ('questions', 'answers', 'comments')

QUESTION_SELECT = """
    SELECT q.id, q.user_id, q.title, q.body, q.tags, q.views,
           q.has_accepted_answer, q.created_at, u.email AS user_email,
           (SELECT COUNT(*) FROM answers a WHERE a.question_id = q.id) AS answer_count
    FROM questions q
    JOIN users u ON q.user_id = u.id
"""

ANSWER_SELECT = """
    SELECT a.id, a.question_id, a.user_id, a.body, a.is_accepted, a.created_at,
           u.email AS user_email
    FROM answers a
    JOIN users u ON a.user_id = u.id
"""

COMMENT_SELECT = """
    SELECT c.id, c.answer_id, c.user_id, c.body, c.created_at,
           u.email AS user_email
    FROM comments c
    JOIN users u ON c.user_id = u.id
"""


def like_pattern(value):
    """Substring pattern for ILIKE with the wildcard characters escaped"""
    escaped = value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return f'%{escaped}%'


def serialize_row(row):
    if row is None:
        return None
    data = dict(row)
    for key, value in data.items():
        if hasattr(value, 'isoformat'):
            data[key] = value.isoformat()
    return data


class PostgresStore:
    """psycopg2-backed implementation of the store interface"""

    def __init__(self, database_url, connect=None):
        self.database_url = database_url
        self._connect = connect or (lambda: get_db_connection(database_url))

    def _transaction(self):
        return transaction(self._connect)

    def _fetchone(self, sql, params):
        with self._transaction() as cursor:
            cursor.execute(sql, params)
            return serialize_row(cursor.fetchone())

    def _fetchall(self, sql, params):
        with self._transaction() as cursor:
            cursor.execute(sql, params)
            return [serialize_row(row) for row in cursor.fetchall()]

    # ===========================================
    # Users
    # ===========================================

    def create_user(self, email, password_hash):
        try:
            with self._transaction() as cursor:
                cursor.execute("""
                    INSERT INTO users (email, password)
                    VALUES (%s, %s)
                    RETURNING id, email
                """, (email, password_hash))
                return serialize_row(cursor.fetchone())
        except UniqueViolation:
            logger.info('Duplicate registration attempt for %s', email)
            raise Conflict('Email already registered')

    def find_user_by_email(self, email):
        return self._fetchone(
            "SELECT id, email, password FROM users WHERE email = %s",
            (email,)
        )

    def user_exists(self, user_id):
        return self._fetchone("SELECT id FROM users WHERE id = %s", (user_id,)) is not None

    def get_owner_id(self, table, row_id):
        if table not in OWNED_TABLES:
            raise ValueError(f'Unsupported table: {table}')
        row = self._fetchone(f"SELECT user_id FROM {table} WHERE id = %s", (row_id,))
        return row['user_id'] if row else None

    # ===========================================
    # Questions
    # ===========================================

    def list_questions(self, owner_id=None, tag=None, search=None, sort='newest'):
        query = QUESTION_SELECT + " WHERE 1 = 1"
        params = []

        if owner_id is not None:
            query += " AND q.user_id = %s"
            params.append(owner_id)

        if tag:
            query += " AND q.tags ILIKE %s ESCAPE '\\'"
            params.append(like_pattern(tag))

        if search:
            query += (
                " AND (q.title ILIKE %s ESCAPE '\\' OR q.body ILIKE %s ESCAPE '\\'"
                " OR q.tags ILIKE %s ESCAPE '\\')"
            )
            params.extend([like_pattern(search)] * 3)

        if sort == 'oldest':
            query += " ORDER BY q.created_at ASC, q.id ASC"
        elif sort == 'popular':
            query += " ORDER BY answer_count DESC, q.views DESC, q.id DESC"
        else:
            query += " ORDER BY q.created_at DESC, q.id DESC"

        return self._fetchall(query, params)

    def get_question(self, question_id):
        return self._fetchone(QUESTION_SELECT + " WHERE q.id = %s", (question_id,))

    def insert_question(self, user_id, title, body, tags):
        with self._transaction() as cursor:
            cursor.execute("""
                INSERT INTO questions (user_id, title, body, tags)
                VALUES (%s, %s, %s, %s)
                RETURNING id
            """, (user_id, title, body, tags))
            return cursor.fetchone()['id']

    def update_question(self, question_id, title, body, tags):
        with self._transaction() as cursor:
            cursor.execute(
                "UPDATE questions SET title = %s, body = %s, tags = %s WHERE id = %s",
                (title, body, tags, question_id)
            )

    def delete_question(self, question_id):
        with self._transaction() as cursor:
            cursor.execute("""
                DELETE FROM comments
                WHERE answer_id IN (SELECT id FROM answers WHERE question_id = %s)
            """, (question_id,))
            cursor.execute("DELETE FROM answers WHERE question_id = %s", (question_id,))
            cursor.execute("DELETE FROM questions WHERE id = %s", (question_id,))

    def increment_views(self, question_id):
        with self._transaction() as cursor:
            cursor.execute("UPDATE questions SET views = views + 1 WHERE id = %s", (question_id,))
            return cursor.rowcount > 0

    # ===========================================
    # Answers
    # ===========================================

    def list_answers(self, question_id):
        return self._fetchall(
            ANSWER_SELECT + " WHERE a.question_id = %s ORDER BY a.is_accepted DESC, a.created_at ASC, a.id ASC",
            (question_id,)
        )

    def get_answer(self, answer_id):
        return self._fetchone(ANSWER_SELECT + " WHERE a.id = %s", (answer_id,))

    def insert_answer(self, question_id, user_id, body):
        with self._transaction() as cursor:
            cursor.execute("""
                INSERT INTO answers (question_id, user_id, body)
                VALUES (%s, %s, %s)
                RETURNING id
            """, (question_id, user_id, body))
            answer_id = cursor.fetchone()['id']
            cursor.execute(
                "UPDATE questions SET answer_count = answer_count + 1 WHERE id = %s",
                (question_id,)
            )
            return answer_id

    def update_answer(self, answer_id, body):
        with self._transaction() as cursor:
            cursor.execute("UPDATE answers SET body = %s WHERE id = %s", (body, answer_id))

    def delete_answer(self, answer_id):
        with self._transaction() as cursor:
            cursor.execute("SELECT question_id FROM answers WHERE id = %s FOR UPDATE", (answer_id,))
            row = cursor.fetchone()
            if not row:
                return
            question_id = row['question_id']

            cursor.execute("DELETE FROM comments WHERE answer_id = %s", (answer_id,))
            cursor.execute("DELETE FROM answers WHERE id = %s", (answer_id,))
            cursor.execute("""
                UPDATE questions
                SET answer_count = GREATEST(answer_count - 1, 0),
                    has_accepted_answer = EXISTS (
                        SELECT 1 FROM answers WHERE question_id = %s AND is_accepted
                    )
                WHERE id = %s
            """, (question_id, question_id))

    def accept_answer(self, answer_id, question_id):
        with self._transaction() as cursor:
            # Serializes concurrent accepts on the same question
            cursor.execute("SELECT id FROM questions WHERE id = %s FOR UPDATE", (question_id,))
            cursor.execute(
                "UPDATE answers SET is_accepted = FALSE WHERE question_id = %s",
                (question_id,)
            )
            cursor.execute("UPDATE answers SET is_accepted = TRUE WHERE id = %s", (answer_id,))
            cursor.execute(
                "UPDATE questions SET has_accepted_answer = TRUE WHERE id = %s",
                (question_id,)
            )

    # ===========================================
    # Comments
    # ===========================================

    def list_comments(self, answer_id):
        return self._fetchall(
            COMMENT_SELECT + " WHERE c.answer_id = %s ORDER BY c.created_at ASC, c.id ASC",
            (answer_id,)
        )

    def get_comment(self, comment_id):
        return self._fetchone(COMMENT_SELECT + " WHERE c.id = %s", (comment_id,))

    def insert_comment(self, answer_id, user_id, body):
        with self._transaction() as cursor:
            cursor.execute("""
                INSERT INTO comments (answer_id, user_id, body)
                VALUES (%s, %s, %s)
                RETURNING id
            """, (answer_id, user_id, body))
            return cursor.fetchone()['id']

    def update_comment(self, comment_id, body):
        with self._transaction() as cursor:
            cursor.execute("UPDATE comments SET body = %s WHERE id = %s", (body, comment_id))

    def delete_comment(self, comment_id):
        with self._transaction() as cursor:
            cursor.execute("DELETE FROM comments WHERE id = %s", (comment_id,))
