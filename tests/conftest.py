"""
Shared fixtures for the survey dashboard tests

Usage:
    pytest tests/ -v

Database tests run against an in-memory SQLite database; nothing here
needs a PostgreSQL server.
"""

import pytest

from care_survey.directory import InstitutionDirectory, InstitutionInfo
from infrastructure.database.connection import create_db_engine, get_session_factory, init_db


# --- Survey records ---

@pytest.fixture
def clean_record():
    """A consistent submission from a non-hub institution in 창원시."""
    return {
        '제출일시': '2025-03-05 10:00:00',
        '시군': '창원시',
        '기관명': '창원노인복지센터',
        '기관코드': 'A001',
        '거점수행기관여부': 'N',
        '전담사회복지사_남': 1,
        '전담사회복지사_여': 3,
        '생활지원사_남': 5,
        '생활지원사_여': 15,
        '일반중점_남_일반': 30,
        '일반중점_남_중점': 10,
        '일반중점_여_일반': 150,
        '일반중점_여_중점': 60,
        '특화_남': 2,
        '특화_여': 8,
        '신규대상자_남': 1,
        '신규대상자_여': 4,
        '배정_전담사회복지사': 4,
        '배정_생활지원사': 20,
        '배정_이용자': 250,
    }


@pytest.fixture
def hub_record():
    """A consistent submission from the short-term hub in 진주시."""
    return {
        '제출일시': '2025-03-06 09:30:00',
        '시군': '진주시',
        '기관명': '진주거점돌봄센터',
        '기관코드': 'B001',
        '거점수행기관여부': 'Y',
        '전담사회복지사_남': 1,
        '전담사회복지사_여': 2,
        '생활지원사_남': 2,
        '생활지원사_여': 10,
        '단기_전담인력_사회복지사_여': 1,
        '단기_전담인력_돌봄제공인력_여': 2,
        '일반중점_남_일반': 20,
        '일반중점_여_일반': 80,
        '단기_남': 3,
        '단기_여': 5,
        '단기_기본_1개월': 6,
        '단기_연장_2개월': 2,
        '단기_당월신규_남': 1,
        '단기_당월신규_여': 2,
        '배정_전담사회복지사': 3,
        '배정_생활지원사': 12,
        '배정_이용자': 100,
    }


# --- Roster ---

@pytest.fixture
def roster_infos():
    return [
        InstitutionInfo(code='A001', name='창원노인복지센터', region='창원시',
                        mow_social_workers=4, mow_care_providers=20, mow_users=250),
        InstitutionInfo(code='A002', name='마산재가센터', region='창원시',
                        mow_social_workers=2, mow_care_providers=10, mow_users=120),
        InstitutionInfo(code='B001', name='진주거점돌봄센터', region='진주시', is_hub=True,
                        mow_social_workers=3, mow_care_providers=12, mow_users=100),
        InstitutionInfo(code='Z999', name='경남광역지원기관', region='*광역지원기관'),
    ]


@pytest.fixture
def directory(roster_infos):
    return InstitutionDirectory(roster_infos)


# --- Database ---

@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite database with the schema created."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    session = get_session_factory(db_engine)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def repository(db_session):
    from infrastructure.database.repository import SurveyRepository
    return SurveyRepository(db_session)
