import json
import logging
import random
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple
from .models import VconFile, AggregateAnalytics, CallQualityRecord
from .analytics import analyze
from . import config

logger = logging.getLogger(__name__)

DDL = [
    '''CREATE TABLE IF NOT EXISTS vcon_files(
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        filename TEXT NOT NULL,
        uploaded_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        data TEXT NOT NULL,
        processed INTEGER DEFAULT 0
    )''',
    '''CREATE TABLE IF NOT EXISTS analytics(
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        file_id INTEGER NOT NULL,
        total_calls INT NOT NULL,
        avg_wait_time REAL NOT NULL,
        escalated_calls INT NOT NULL,
        satisfaction_score REAL NOT NULL,
        top_complaints TEXT DEFAULT '[]',
        top_compliments TEXT DEFAULT '[]',
        popular_service TEXT,
        least_engaged_service TEXT,
        avg_quality_score REAL NOT NULL,
        top_performing_agent TEXT,
        calls_below_threshold INT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY(file_id) REFERENCES vcon_files(id)
    )''',
    '''CREATE TABLE IF NOT EXISTS call_quality(
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        file_id INTEGER NOT NULL,
        call_index INT NOT NULL,
        agent_name TEXT,
        quality_score REAL NOT NULL,
        has_greeting INTEGER DEFAULT 0,
        has_closing INTEGER DEFAULT 0,
        is_calm INTEGER DEFAULT 0,
        resolved_in_time INTEGER DEFAULT 0,
        was_transferred INTEGER DEFAULT 0,
        duration REAL NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY(file_id) REFERENCES vcon_files(id),
        UNIQUE(file_id, call_index)
    )'''
]

ANALYTICS_COLS = ("file_id,total_calls,avg_wait_time,escalated_calls,satisfaction_score,top_complaints,"
                  "top_compliments,popular_service,least_engaged_service,avg_quality_score,"
                  "top_performing_agent,calls_below_threshold")
QUALITY_COLS = ("file_id,call_index,agent_name,quality_score,has_greeting,has_closing,is_calm,"
                "resolved_in_time,was_transferred,duration")

def connect():
    db_path = Path(config.DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(str(db_path))

def init_db():
    con = connect()
    try:
        cur = con.cursor()
        for stmt in DDL:
            cur.execute(stmt)
        con.commit()
    finally:
        con.close()

def _file_from_row(row) -> VconFile:
    fid, filename, uploaded_at, data, processed = row
    return VconFile(id=fid, filename=filename, uploaded_at=str(uploaded_at),
                    data=json.loads(data), processed=bool(processed))

def _analytics_from_row(row) -> AggregateAnalytics:
    (file_id, total, avg_wait, escalated, satisfaction, complaints, compliments,
     popular, least, avg_quality, top_agent, below) = row
    return AggregateAnalytics(
        file_id=file_id, total_calls=total, avg_wait_time_seconds=avg_wait,
        escalated_calls=escalated, satisfaction_score=satisfaction,
        top_complaints=json.loads(complaints or "[]"), top_compliments=json.loads(compliments or "[]"),
        popular_service=popular or "", least_engaged_service=least or "",
        avg_quality_score=avg_quality, top_performing_agent=top_agent or "",
        calls_below_threshold=below)

def _quality_from_row(row) -> CallQualityRecord:
    file_id, idx, agent, score, greet, close, calm, in_time, transferred, duration = row
    return CallQualityRecord(
        file_id=file_id, call_index=idx, agent_name=agent or "", quality_score=score,
        has_greeting=bool(greet), has_closing=bool(close), is_calm=bool(calm),
        resolved_in_time=bool(in_time), was_transferred=bool(transferred), duration_seconds=duration)

# vCon files

def _insert_vcon_file(con, filename: str, data: Dict[str, Any]) -> int:
    cur = con.execute("INSERT INTO vcon_files(filename, data) VALUES(?,?)", (filename, json.dumps(data)))
    return cur.lastrowid

def create_vcon_file(filename: str, data: Dict[str, Any]) -> VconFile:
    con = connect()
    try:
        file_id = _insert_vcon_file(con, filename, data)
        con.commit()
    finally:
        con.close()
    return get_vcon_file(file_id)

def get_vcon_file(file_id: int) -> Optional[VconFile]:
    con = connect()
    try:
        row = con.execute("SELECT id, filename, uploaded_at, data, processed FROM vcon_files WHERE id=?",
                          (file_id,)).fetchone()
        return _file_from_row(row) if row else None
    finally:
        con.close()

def list_vcon_files() -> List[VconFile]:
    con = connect()
    try:
        rows = con.execute("SELECT id, filename, uploaded_at, data, processed FROM vcon_files ORDER BY id DESC").fetchall()
        return [_file_from_row(r) for r in rows]
    finally:
        con.close()

def _mark_processed(con, file_id: int):
    con.execute("UPDATE vcon_files SET processed=1 WHERE id=?", (file_id,))

def mark_processed(file_id: int):
    con = connect()
    try:
        _mark_processed(con, file_id)
        con.commit()
    finally:
        con.close()

# Analytics

def _insert_analytics(con, a: AggregateAnalytics) -> int:
    cur = con.execute(f"INSERT INTO analytics({ANALYTICS_COLS}) VALUES(?,?,?,?,?,?,?,?,?,?,?,?)",
                      (a.file_id, a.total_calls, a.avg_wait_time_seconds, a.escalated_calls,
                       a.satisfaction_score, json.dumps(a.top_complaints), json.dumps(a.top_compliments),
                       a.popular_service, a.least_engaged_service, a.avg_quality_score,
                       a.top_performing_agent, a.calls_below_threshold))
    return cur.lastrowid

def insert_analytics(a: AggregateAnalytics) -> int:
    con = connect()
    try:
        row_id = _insert_analytics(con, a)
        con.commit()
        return row_id
    finally:
        con.close()

def get_analytics_by_file_id(file_id: int) -> Optional[AggregateAnalytics]:
    con = connect()
    try:
        row = con.execute(f"SELECT {ANALYTICS_COLS} FROM analytics WHERE file_id=? ORDER BY id LIMIT 1",
                          (file_id,)).fetchone()
        return _analytics_from_row(row) if row else None
    finally:
        con.close()

def get_latest_analytics() -> Optional[AggregateAnalytics]:
    con = connect()
    try:
        # CURRENT_TIMESTAMP has second resolution, id breaks ties
        row = con.execute(f"SELECT {ANALYTICS_COLS} FROM analytics ORDER BY created_at DESC, id DESC LIMIT 1").fetchone()
        return _analytics_from_row(row) if row else None
    finally:
        con.close()

def all_analytics() -> List[AggregateAnalytics]:
    con = connect()
    try:
        rows = con.execute(f"SELECT {ANALYTICS_COLS} FROM analytics ORDER BY id").fetchall()
        return [_analytics_from_row(r) for r in rows]
    finally:
        con.close()

# Call quality

def _insert_call_qualities(con, records: Iterable[CallQualityRecord]) -> List[int]:
    ids = []
    cur = con.cursor()
    for r in records:
        cur.execute(f"INSERT INTO call_quality({QUALITY_COLS}) VALUES(?,?,?,?,?,?,?,?,?,?)",
                    (r.file_id, r.call_index, r.agent_name, r.quality_score, r.has_greeting,
                     r.has_closing, r.is_calm, r.resolved_in_time, r.was_transferred, r.duration_seconds))
        ids.append(cur.lastrowid)
    return ids

def insert_call_qualities(records: Iterable[CallQualityRecord]) -> List[int]:
    con = connect()
    try:
        ids = _insert_call_qualities(con, records)
        con.commit()
        return ids
    finally:
        con.close()

def call_qualities_by_file_id(file_id: int) -> List[CallQualityRecord]:
    con = connect()
    try:
        rows = con.execute(f"SELECT {QUALITY_COLS} FROM call_quality WHERE file_id=? ORDER BY call_index",
                           (file_id,)).fetchall()
        return [_quality_from_row(r) for r in rows]
    finally:
        con.close()

def all_call_qualities() -> List[CallQualityRecord]:
    con = connect()
    try:
        rows = con.execute(f"SELECT {QUALITY_COLS} FROM call_quality ORDER BY file_id, call_index").fetchall()
        return [_quality_from_row(r) for r in rows]
    finally:
        con.close()

def latest_call_qualities() -> List[CallQualityRecord]:
    con = connect()
    try:
        row = con.execute("SELECT MAX(file_id) FROM call_quality").fetchone()
    finally:
        con.close()
    if not row or row[0] is None:
        return []
    return call_qualities_by_file_id(row[0])

# Pipeline

def ingest_document(filename: str, data: Dict[str, Any],
                    rng: Optional[random.Random] = None) -> Tuple[VconFile, AggregateAnalytics, List[CallQualityRecord]]:
    """Store a validated document, analyze it and persist both result sets."""
    if rng is None and config.SERVICE_SEED is not None:
        rng = random.Random(config.SERVICE_SEED)
    init_db()
    con = connect()
    try:
        # One transaction: either the file and both result sets are stored, or nothing is
        with con:
            file_id = _insert_vcon_file(con, filename, data)
            analytics, records = analyze(data, file_id, rng=rng)
            _insert_analytics(con, analytics)
            _insert_call_qualities(con, records)
            _mark_processed(con, file_id)
    finally:
        con.close()
    vfile = get_vcon_file(file_id)
    logger.info("Ingested %s as file %d: %d calls, avg quality %.1f",
                filename, vfile.id, analytics.total_calls, analytics.avg_quality_score)
    return vfile, analytics, records
