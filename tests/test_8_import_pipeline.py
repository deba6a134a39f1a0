import pytest

from ledger_import.categorize import EXPENSE, INCOME
from ledger_import.cli import fixed_decision, main, prompt_decision
from ledger_import.columns import BankFormatError, ColumnDetectionError
from ledger_import.importer import (
    InvalidFileTypeError,
    import_statement,
    prepare_import,
    read_statement_file,
)
from ledger_import.ledger import Ledger
from ledger_import.merge import KEEP_EXISTING, MERGE

@pytest.mark.dependency()
class TestReadStatementFile:
    """Test suite for loading statement files."""

    @pytest.mark.dependency()
    def test_read_csv(self, sample_csv, write_csv):
        path = write_csv(sample_csv('generic'))
        assert read_statement_file(path) == sample_csv('generic')

    @pytest.mark.dependency(depends=["TestReadStatementFile::test_read_csv"])
    def test_byte_order_mark_removed(self, tmp_path):
        path = tmp_path / 'bom.csv'
        path.write_bytes(b'\xef\xbb\xbfDate,Description,Amount\n31/01/2025,X,-1.00\n')
        assert read_statement_file(path).startswith('Date')

    def test_cp1252_fallback(self, tmp_path):
        """Test files that are not UTF-8 are decoded with cp1252."""
        path = tmp_path / 'legacy.csv'
        path.write_bytes('Date,Description,Amount\n31/01/2025,CAFÉ ROMA,-4.00\n'.encode('cp1252'))
        assert 'CAFÉ ROMA' in read_statement_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_statement_file(tmp_path / 'absent.csv')

    def test_wrong_extension(self, write_csv):
        path = write_csv('Date,Description,Amount\n', name='statement.txt')
        with pytest.raises(InvalidFileTypeError, match="Invalid file type: .txt"):
            read_statement_file(path)

    def test_directory(self, tmp_path):
        with pytest.raises(InvalidFileTypeError, match="directory"):
            read_statement_file(tmp_path)

    def test_empty_file(self, write_csv):
        path = write_csv('')
        with pytest.raises(ValueError, match="File is empty"):
            read_statement_file(path)

class TestImportStatement:
    """Test suite for the whole import pipeline."""

    def test_generic_import(self, empty_ledger, sample_csv, write_csv):
        """Test a generic statement lands in the ledger classified but uncategorized.

        Verifies:
        - Date is normalized to ISO
        - Type is inferred from the sign
        - No category without rules
        """
        summary = import_statement(empty_ledger, write_csv(sample_csv('generic')), 'acc-1')
        assert summary['imported'] == 1
        assert summary['duplicates'] == 0

        transaction = empty_ledger.transactions[0]
        assert transaction['date'] == '2025-01-31T00:00:00'
        assert transaction['description'] == 'WOOLWORTHS 123'
        assert transaction['amount'] == -45.60
        assert transaction['type'] == EXPENSE
        assert transaction['category_id'] is None
        assert transaction['account_id'] == 'acc-1'
        assert transaction['original_data']['Description'] == 'WOOLWORTHS 123'

    def test_reimport_next_day_is_flagged(self, empty_ledger, sample_csv, write_csv):
        """Test a next-day statement line is flagged once and kept out by default."""
        import_statement(empty_ledger, write_csv(sample_csv('generic'), 'first.csv'), 'acc-1')
        summary = import_statement(empty_ledger, write_csv(sample_csv('generic_next_day'), 'second.csv'), 'acc-1')
        assert summary['duplicates'] == 1
        assert summary['kept_existing'] == 1
        assert summary['imported'] == 0
        assert len(empty_ledger.transactions) == 1

    def test_reimport_with_merge(self, empty_ledger, sample_csv, write_csv):
        import_statement(empty_ledger, write_csv(sample_csv('generic'), 'first.csv'), 'acc-1')
        summary = import_statement(empty_ledger, write_csv(sample_csv('generic_next_day'), 'second.csv'), 'acc-1',
                                   decide=fixed_decision(MERGE))
        assert summary['merged'] == 1
        assert [t['date'] for t in empty_ledger.transactions] == ['2025-02-01T00:00:00']

    def test_cba_headerless_import(self, sample_ledger, sample_csv, write_csv):
        """Test a headerless CBA file imports by position and is categorized by the rules."""
        summary = import_statement(sample_ledger, write_csv(sample_csv('cba_headerless')), 'acc-cba')
        assert summary['imported'] == 2

        added = [t for t in sample_ledger.transactions if t['account_id'] == 'acc-cba']
        assert [t['amount'] for t in added] == [-45.60, 2500.0]
        assert added[0]['category_id'] == 'cat-groceries'
        assert added[1]['type'] == INCOME
        assert added[1]['category_id'] is None

    def test_stgeorge_import(self, sample_ledger, sample_csv, write_csv):
        summary = import_statement(sample_ledger, write_csv(sample_csv('stgeorge')), 'acc-stg')
        assert summary['imported'] == 2

    def test_skipped_rows_summarized(self, empty_ledger, sample_csv, write_csv):
        summary = import_statement(empty_ledger, write_csv(sample_csv('messy')), 'acc-1')
        assert summary['imported'] == 2
        assert summary['skipped_rows'] == 3
        assert [s['row'] for s in summary['skipped']] == [2, 3, 4]

    def test_undetectable_columns(self, empty_ledger, write_csv):
        """Test unresolvable columns abort before anything is parsed."""
        path = write_csv('foo,bar\n1,2\n')
        with pytest.raises(ColumnDetectionError):
            import_statement(empty_ledger, path, 'acc-1')
        assert empty_ledger.transactions == []

    def test_bank_format_mismatch(self, sample_ledger, sample_csv, write_csv):
        """Test a St.George account rejects a file without debit/credit columns."""
        with pytest.raises(BankFormatError, match="STGEORGE"):
            import_statement(sample_ledger, write_csv(sample_csv('generic')), 'acc-stg')
        assert len(sample_ledger.transactions) == 1

    def test_all_rows_skipped(self, empty_ledger, write_csv):
        path = write_csv('Date,Description,Amount\nnot-a-date,X,-1.00\n')
        with pytest.raises(ValueError, match="all 1 rows were skipped"):
            import_statement(empty_ledger, path, 'acc-1')

    def test_header_only_file(self, empty_ledger, write_csv):
        with pytest.raises(ValueError, match="No valid data rows"):
            import_statement(empty_ledger, write_csv('Date,Description,Amount\n'), 'acc-1')

    def test_unknown_account(self, empty_ledger, sample_csv):
        with pytest.raises(ValueError, match="Account not found"):
            prepare_import(empty_ledger, sample_csv('generic'), 'acc-missing')

    def test_prepare_import_returns_idle_session(self, sample_ledger, sample_csv):
        """Test callers can drive the review themselves."""
        session = prepare_import(sample_ledger, sample_csv('generic'), 'acc-1')
        duplicate = session.start()
        assert duplicate.existing_transaction['id'] == 'txn-existing'
        session.decide(KEEP_EXISTING)
        assert session.commit() == []

class TestCommandLine:
    """Test suite for the command line entry point."""

    def test_prompt_decision(self, sample_ledger, sample_csv, monkeypatch):
        """Test the prompt maps answers to decisions and re-asks on bad input."""
        session = prepare_import(sample_ledger, sample_csv('generic'), 'acc-1')
        duplicate = session.start()

        answers = iter(['x', 'm'])
        monkeypatch.setattr('builtins.input', lambda prompt: next(answers))
        assert prompt_decision(duplicate) == MERGE

        monkeypatch.setattr('builtins.input', lambda prompt: '')
        assert prompt_decision(duplicate) == KEEP_EXISTING

        monkeypatch.setattr('builtins.input', lambda prompt: 'q')
        assert prompt_decision(duplicate) is None

    def test_import_command(self, tmp_path, sample_csv, write_csv, monkeypatch, capsys):
        """Test importing into a new account saves the ledger file."""
        monkeypatch.setenv('LOG_FILE', str(tmp_path / 'logs' / 'test.log'))
        ledger_path = tmp_path / 'ledger.json'
        statement = write_csv(sample_csv('generic'))

        exit_code = main(['--ledger', str(ledger_path), 'import', str(statement),
                          '--new-account', 'Everyday', '--on-duplicate', 'keep'])
        assert exit_code == 0
        assert "Imported Transactions: 1" in capsys.readouterr().out

        ledger = Ledger.load(ledger_path)
        assert [a['name'] for a in ledger.accounts] == ['Everyday']
        assert ledger.transactions[0]['category_id'] == 'cat-groceries'

        assert main(['--ledger', str(ledger_path), 'accounts']) == 0
        assert 'Everyday' in capsys.readouterr().out

    def test_import_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv('LOG_FILE', str(tmp_path / 'test.log'))
        ledger_path = tmp_path / 'ledger.json'
        exit_code = main(['--ledger', str(ledger_path), 'import', str(tmp_path / 'absent.csv'),
                          '--account', 'acc-1'])
        assert exit_code == 1
        assert not ledger_path.exists()

    def test_export_command(self, tmp_path, sample_ledger, monkeypatch):
        monkeypatch.setenv('LOG_FILE', str(tmp_path / 'test.log'))
        ledger_path = tmp_path / 'ledger.json'
        sample_ledger.save(ledger_path)

        assert main(['--ledger', str(ledger_path), 'export', str(tmp_path / 'out')]) == 0
        assert (tmp_path / 'out' / 'transactions.csv').exists()
