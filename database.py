"""
Database module - DuckDB store for the submission review workflow
"""
import json
import logging

import duckdb

from config import DB_PATH
from data_cleaning import local_timestamp

logger = logging.getLogger(__name__)


class KpiReviewDB:
    """Pending submissions, approvals, locked baselines and action plans"""

    def __init__(self, db_path=DB_PATH):
        self.db_path = db_path
        self.conn = None

    def connect(self):
        """Connect to DuckDB database"""
        self.conn = duckdb.connect(self.db_path)
        return self.conn

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            self.conn = None

    def _execute(self, sql, params=None):
        if not self.conn:
            self.connect()
        return self.conn.execute(sql, params or [])

    def create_schema(self):
        """Create review tables"""
        self._execute("""
            CREATE TABLE IF NOT EXISTS Submissions (
                submission_id VARCHAR PRIMARY KEY,
                client_id VARCHAR,
                client_name VARCHAR,
                store_id VARCHAR,
                status VARCHAR,
                submitted_by_role VARCHAR,
                created_at VARCHAR,
                reviewed_at VARCHAR,
                admin_notes VARCHAR,
                payload VARCHAR
            )
        """)

        self._execute("""
            CREATE TABLE IF NOT EXISTS Baselines (
                client_id VARCHAR,
                store_id VARCHAR,
                submission_id VARCHAR,
                locked_at VARCHAR,
                payload VARCHAR,
                PRIMARY KEY (client_id, store_id)
            )
        """)

        self._execute("""
            CREATE TABLE IF NOT EXISTS Approved (
                client_id VARCHAR,
                store_id VARCHAR,
                submission_id VARCHAR,
                reviewed_at VARCHAR,
                payload VARCHAR,
                PRIMARY KEY (client_id, store_id)
            )
        """)

        self._execute("""
            CREATE TABLE IF NOT EXISTS ActionPlans (
                cycle_id VARCHAR PRIMARY KEY,
                client_id VARCHAR,
                payload VARCHAR
            )
        """)

    def submit(self, submission):
        """Queue a submission for admin review"""
        payload = {
            "monthly": submission.get("monthly", []),
            "weekly": submission.get("weekly", []),
        }
        self._execute(
            "INSERT INTO Submissions VALUES (?, ?, ?, ?, 'pending', ?, ?, NULL, NULL, ?)",
            [
                submission["submission_id"],
                submission.get("client_id", ""),
                submission.get("client_name") or submission.get("client_id", ""),
                submission.get("store_id", ""),
                submission.get("submitted_by_role", "client"),
                submission.get("created_at") or local_timestamp(),
                json.dumps(payload),
            ],
        )
        logger.info("Queued submission %s for %s/%s", submission["submission_id"],
                    submission.get("client_id", ""), submission.get("store_id", ""))
        return submission["submission_id"]

    def _submission_from_row(self, row):
        (submission_id, client_id, client_name, store_id, status, role,
         created_at, reviewed_at, admin_notes, payload) = row
        data = json.loads(payload or "{}")
        return {
            "submission_id": submission_id,
            "client_id": client_id,
            "client_name": client_name,
            "store_id": store_id,
            "status": status,
            "submitted_by_role": role,
            "created_at": created_at,
            "reviewed_at": reviewed_at,
            "admin_notes": admin_notes or "",
            "monthly": data.get("monthly", []),
            "weekly": data.get("weekly", []),
        }

    def get_submission(self, submission_id):
        row = self._execute(
            "SELECT * FROM Submissions WHERE submission_id = ?", [submission_id]
        ).fetchone()
        return self._submission_from_row(row) if row else None

    def pending_submissions(self):
        """Pending submissions, oldest first"""
        rows = self._execute(
            "SELECT * FROM Submissions WHERE status = 'pending' ORDER BY created_at, submission_id"
        ).fetchall()
        return [self._submission_from_row(row) for row in rows]

    def _require_pending(self, submission_id):
        submission = self.get_submission(submission_id)
        if submission is None or submission["status"] != "pending":
            raise ValueError(f"No pending submission {submission_id}")
        return submission

    def approve(self, submission_id, admin_notes=""):
        """
        Approve a pending submission

        The first approval for a client/store is locked in as its baseline;
        every approval replaces the latest approved snapshot.

        Returns:
            The approved snapshot dict
        """
        submission = self._require_pending(submission_id)
        reviewed_at = local_timestamp()
        client_id, store_id = submission["client_id"], submission["store_id"]

        approved = dict(submission, status="approved", reviewed_at=reviewed_at, admin_notes=admin_notes)
        payload = json.dumps(approved)

        self._execute("BEGIN TRANSACTION")
        try:
            if self.baseline(client_id, store_id) is None:
                self._execute(
                    "INSERT INTO Baselines VALUES (?, ?, ?, ?, ?)",
                    [client_id, store_id, submission_id, reviewed_at, payload],
                )
                logger.info("Locked baseline for %s/%s from %s", client_id, store_id, submission_id)

            self._execute(
                "INSERT OR REPLACE INTO Approved VALUES (?, ?, ?, ?, ?)",
                [client_id, store_id, submission_id, reviewed_at, payload],
            )
            self._execute(
                "UPDATE Submissions SET status = 'approved', reviewed_at = ?, admin_notes = ? WHERE submission_id = ?",
                [reviewed_at, admin_notes, submission_id],
            )
        except Exception:
            self._execute("ROLLBACK")
            raise
        self._execute("COMMIT")
        return approved

    def reject(self, submission_id, admin_notes=""):
        self._require_pending(submission_id)
        self._execute(
            "UPDATE Submissions SET status = 'rejected', reviewed_at = ?, admin_notes = ? WHERE submission_id = ?",
            [local_timestamp(), admin_notes, submission_id],
        )
        logger.info("Rejected submission %s", submission_id)

    def clear_pending(self):
        """Drop every pending submission; returns how many were removed"""
        count = self._execute("SELECT COUNT(*) FROM Submissions WHERE status = 'pending'").fetchone()[0]
        self._execute("DELETE FROM Submissions WHERE status = 'pending'")
        return count

    def _snapshot(self, table, client_id, store_id):
        row = self._execute(
            f"SELECT payload FROM {table} WHERE client_id = ? AND store_id = ?", [client_id, store_id]
        ).fetchone()
        return json.loads(row[0]) if row else None

    def latest_approved(self, client_id, store_id):
        return self._snapshot("Approved", client_id, store_id)

    def baseline(self, client_id, store_id):
        return self._snapshot("Baselines", client_id, store_id)

    def save_plan(self, plan):
        self._execute(
            "INSERT OR REPLACE INTO ActionPlans VALUES (?, ?, ?)",
            [plan["cycle_id"], plan.get("client_id", ""), json.dumps(plan)],
        )

    def load_plan(self, cycle_id):
        row = self._execute("SELECT payload FROM ActionPlans WHERE cycle_id = ?", [cycle_id]).fetchone()
        return json.loads(row[0]) if row else None

    def query(self, sql):
        """Execute SQL query and return DataFrame"""
        return self._execute(sql).df()

    def review_history(self, client_id=None):
        """Reviewed and pending submissions as a DataFrame, newest first"""
        where, params = "", []
        if client_id:
            where, params = "WHERE client_id = ?", [client_id]
        return self._execute(f"""
            SELECT submission_id, client_id, store_id, status, created_at, reviewed_at, admin_notes
            FROM Submissions
            {where}
            ORDER BY created_at DESC, submission_id
        """, params).df()
