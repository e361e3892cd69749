import pytest

from flock.exceptions import StoreConflict
from flock.sa.repositories import AuthorRepository

@pytest.fixture
def repo(db_session):
    return AuthorRepository(db_session)

def test_insert_and_lookup(repo):
    author = repo.insert('OL5A', 'Ursula K. Le Guin', subjects='FANTASY', source='OPEN_LIBRARY')

    assert repo.get_by_olid('OL5A').id == author.id
    assert repo.get_by_id(author.id).name == 'Ursula K. Le Guin'
    assert repo.get_by_olid(None) is None

def test_insert_duplicate_olid_conflicts(repo, sample_author):
    with pytest.raises(StoreConflict) as excinfo:
        repo.insert(sample_author.olid, 'Someone Else')
    assert excinfo.value.key == sample_author.olid

def test_same_name_different_olid_allowed(repo, sample_author):
    other = repo.insert('OL2A', sample_author.name)
    assert other.id != sample_author.id
    assert repo.get_by_olid('OL2A').name == sample_author.name

def test_merge_subjects_is_a_union(repo, sample_author):
    assert repo.merge_subjects(sample_author, {'FANTASY'})
    assert repo.get_by_olid('OL1A').subjects == 'FANTASY,SCIENCE_FICTION'
    assert not repo.merge_subjects(sample_author, {'FANTASY'})
