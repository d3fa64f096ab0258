"""SQL statements for progress writes and statistics."""


# SQLite (>= 3.24) upsert syntax. Columns only change when their parameter is
# supplied; time always accumulates.

UPSERT_PROGRESS_QUERY = """
INSERT INTO user_progress (
    id, user_id, content_id, status, completion_percentage, time_spent,
    last_accessed, created_at, updated_at
)
VALUES (
    :id, :user_id, :content_id, COALESCE(:status, 'not-started'),
    COALESCE(:completion_percentage, 0), :time_spent, :last_accessed, :now, :now
)
ON CONFLICT (user_id, content_id)
DO UPDATE SET
    status = COALESCE(:status, user_progress.status),
    completion_percentage = COALESCE(:completion_percentage, user_progress.completion_percentage),
    time_spent = user_progress.time_spent + :time_spent,
    last_accessed = :last_accessed,
    updated_at = :now
"""

GET_PROGRESS_ID_QUERY = """
SELECT id FROM user_progress
WHERE user_id = :user_id
AND content_id = :content_id
"""

UPSERT_SECTION_PROGRESS_QUERY = """
INSERT INTO section_progress (
    id, progress_id, section_id, completed, time_spent, last_accessed, created_at, updated_at
)
VALUES (
    :id, :progress_id, :section_id, COALESCE(:completed, 0), :time_spent, :last_accessed, :now, :now
)
ON CONFLICT (progress_id, section_id)
DO UPDATE SET
    completed = COALESCE(:completed, section_progress.completed),
    time_spent = section_progress.time_spent + :time_spent,
    last_accessed = :last_accessed,
    updated_at = :now
"""

INSERT_QUIZ_RESULT_QUERY = """
INSERT INTO quiz_results (
    id, progress_id, quiz_id, score, total_questions, correct_answers,
    completed_at, time_spent, is_review_mode, created_at
)
VALUES (
    :id, :progress_id, :quiz_id, :score, :total_questions, :correct_answers,
    :completed_at, :time_spent, :is_review_mode, :now
)
"""

INSERT_ANSWER_DETAIL_QUERY = """
INSERT INTO answer_details (
    id, quiz_result_id, question_id, user_answer, is_correct, time_spent, created_at
)
VALUES (:id, :quiz_result_id, :question_id, :user_answer, :is_correct, :time_spent, :now)
"""

# Completion counts only sections that belong to the content.
SECTION_COMPLETION_QUERY = """
SELECT
    (SELECT COUNT(*) FROM content_sections WHERE content_id = up.content_id) AS total,
    (
        SELECT COUNT(*) FROM section_progress sp
        JOIN content_sections cs ON cs.id = sp.section_id AND cs.content_id = up.content_id
        WHERE sp.progress_id = up.id AND sp.completed = 1
    ) AS completed
FROM user_progress up
WHERE up.id = :progress_id
"""

SET_COMPLETION_QUERY = """
UPDATE user_progress
SET completion_percentage = :completion_percentage,
    status = :status
WHERE id = :progress_id
"""

# --- Statistics ---

USER_TOTALS_QUERY = """
SELECT
    COALESCE(SUM(time_spent), 0) AS total_time,
    COALESCE(SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END), 0) AS completed,
    COALESCE(SUM(CASE WHEN status = 'in-progress' THEN 1 ELSE 0 END), 0) AS in_progress
FROM user_progress
WHERE user_id = :user_id
"""

USER_AVERAGE_SCORE_QUERY = """
SELECT AVG(qr.score) AS avg_score
FROM quiz_results qr
JOIN user_progress up ON qr.progress_id = up.id
WHERE up.user_id = :user_id
"""

USER_CONTENT_SCORES_QUERY = """
SELECT c.id AS content_id, c.tags AS tags, AVG(qr.score) AS avg_score
FROM contents c
JOIN user_progress up ON c.id = up.content_id
JOIN quiz_results qr ON qr.progress_id = up.id
WHERE up.user_id = :user_id
GROUP BY c.id, c.tags
"""
