import json

from expense_tracker import cli


def _run(store_path, *args, confirm=None):
    return cli.main(['--store', str(store_path), *args], confirm=confirm)


def _stored(store_path):
    data = json.loads(store_path.read_text(encoding='utf-8'))
    return data.get('budget'), json.loads(data.get('expenses', '[]'))


def test_budget_and_add_persist(tmp_path, capsys):
    store_path = tmp_path / 'ledger.json'
    assert _run(store_path, 'budget', '1000') == 0
    assert _run(store_path, 'add', 'groceries', '200', '2024-01-01') == 0
    assert _run(store_path, 'add', 'utilities', '300', '2024-01-02') == 0

    budget, expenses = _stored(store_path)
    assert budget == '1000'
    assert [row['category'] for row in expenses] == ['groceries', 'utilities']
    assert 'Remaining budget: $500.00' in capsys.readouterr().out


def test_threshold_message_printed(tmp_path, capsys):
    store_path = tmp_path / 'ledger.json'
    _run(store_path, 'budget', '100')
    _run(store_path, 'add', 'entertainment', '85', '2024-01-03')
    assert '80% of the budget has been utilized' in capsys.readouterr().out


def test_invalid_add_exits_with_error(tmp_path, capsys):
    store_path = tmp_path / 'ledger.json'
    assert _run(store_path, 'add', 'groceries', '0', '2024-01-01') == 1
    assert 'Please fill in all fields correctly.' in capsys.readouterr().out
    assert not store_path.exists()


def test_edit_updates_single_field(tmp_path):
    store_path = tmp_path / 'ledger.json'
    _run(store_path, 'add', 'groceries', '200', '2024-01-01')
    assert _run(store_path, 'edit', '0', '--amount', '250') == 0
    _, expenses = _stored(store_path)
    assert expenses == [{'category': 'groceries', 'amount': 250.0, 'date': '2024-01-01'}]


def test_delete_honours_prompt_answer(tmp_path):
    store_path = tmp_path / 'ledger.json'
    _run(store_path, 'add', 'groceries', '200', '2024-01-01')

    assert _run(store_path, 'delete', '0', confirm=lambda message: False) == 0
    assert len(_stored(store_path)[1]) == 1

    assert _run(store_path, 'delete', '0', '--yes') == 0
    assert _stored(store_path)[1] == []


def test_delete_bad_index(tmp_path, capsys):
    store_path = tmp_path / 'ledger.json'
    assert _run(store_path, 'delete', '3', '--yes') == 1
    assert 'No expense at index 3' in capsys.readouterr().out


def test_clear_sort_and_list(tmp_path, capsys):
    store_path = tmp_path / 'ledger.json'
    _run(store_path, 'add', 'utilities', '30', '2024-01-01')
    _run(store_path, 'add', 'groceries', '10', '2024-01-02')
    _run(store_path, 'sort', 'amount')
    assert [row['amount'] for row in _stored(store_path)[1]] == [10.0, 30.0]

    capsys.readouterr()
    _run(store_path, 'list', '--category', 'utilities')
    out = capsys.readouterr().out
    assert 'Utilities' in out
    assert 'Groceries' not in out

    assert _run(store_path, 'clear', '--yes') == 0
    assert _stored(store_path)[1] == []
