# tests/test_ocr.py

import pytest

from app.ocr import extractor
from app.ocr.extractor import OcrError, extract_document, get_prompt, parse_extracted_data
from app.ocr.fields import (Form3Fields, GenericFields, SalaryLedgerFields, field_items, parse_fields,
                            to_bool, to_number)

LEDGER_REPLY = """抽出結果は以下の通りです。
```json
{
  "employee_name": "田中花子",
  "period": "2025-04",
  "base_salary": "210,000円",
  "fixed_allowances": 10000,
  "overtime_pay": null,
  "commuting_allowance": "15,000",
  "work_days": "20日",
  "scheduled_work_days": 20
}
```"""


# --- Reply parsing ---

def test_fenced_json_block_is_preferred():
    data, failed = parse_extracted_data(LEDGER_REPLY)
    assert failed is False
    assert data['employee_name'] == '田中花子'


def test_bare_braces_are_accepted():
    data, failed = parse_extracted_data('結果: {"company_name": "株式会社サンプル"} 以上')
    assert failed is False
    assert data == {'company_name': '株式会社サンプル'}


@pytest.mark.parametrize('text', ['', None, '読み取れませんでした', '```json\n[1, 2]\n```', '{not json}'])
def test_unusable_replies_are_flagged(text):
    assert parse_extracted_data(text) == ({}, True)


def test_prompt_falls_back_for_other_documents():
    assert '賃金台帳' in get_prompt('salary_ledger')
    assert get_prompt('other').startswith(extractor.BASE_PROMPT)
    assert extractor.DEFAULT_PROMPT in get_prompt('unknown')


# --- Field coercion ---

@pytest.mark.parametrize('value, expected', [
    ('210,000円', 210000), (15000, 15000), ('約3.5%', 3.5), ('-500', -500), ('なし', None), (None, None), (True, None),
])
def test_to_number(value, expected):
    assert to_number(value) == expected


@pytest.mark.parametrize('value, expected', [('あり', True), ('無', False), (True, True), ('不明', None)])
def test_to_bool(value, expected):
    assert to_bool(value) is expected


def test_parse_salary_ledger_fields():
    data, _ = parse_extracted_data(LEDGER_REPLY)
    parsed, warnings = parse_fields('salary_ledger', data)
    assert isinstance(parsed, SalaryLedgerFields)
    assert warnings == []
    assert parsed.base_salary == 210000
    assert parsed.commuting_allowance == 15000
    assert parsed.overtime_pay is None
    assert parsed.work_days == 20


def test_ledger_fields_become_a_salary_record():
    parsed, _ = parse_fields('salary_ledger', {'period': '2025-04', 'base_salary': '210,000', 'work_days': 18,
                                               'scheduled_work_days': 20})
    record = parsed.to_salary_record()
    assert record.year_month == '2025-04'
    assert record.base_salary == 210000
    assert record.overtime_pay == 0
    assert record.is_short_month


def test_unreadable_and_negative_values_are_warnings():
    parsed, warnings = parse_fields('salary_ledger', {'base_salary': '不明', 'work_days': -3})
    assert parsed.base_salary is None
    assert warnings == ['基本給: 「不明」を読み取れませんでした', '出勤日数: 負の値です']


def test_form3_fields_keep_text_as_text():
    parsed, _ = parse_fields('form_3', {'insurance_number': ' 1234-567890-1 ', 'post_salary_total': '1,362,000'})
    assert isinstance(parsed, Form3Fields)
    assert parsed.insurance_number == '1234-567890-1'
    assert parsed.post_salary_total == 1362000
    assert ('雇用保険適用事業所番号', '1234-567890-1') in field_items(parsed)


def test_other_documents_keep_the_raw_mapping():
    parsed, warnings = parse_fields('other', {'件名': '通知書'})
    assert isinstance(parsed, GenericFields)
    assert warnings == []
    assert field_items(parsed) == [('件名', '通知書')]


# --- extract_document ---

def test_extract_document_parses_the_reply(monkeypatch):
    calls = []

    def fake_call(file_bytes, mime_type, prompt, api_key, model):
        calls.append((file_bytes, mime_type, api_key, model))
        return LEDGER_REPLY

    monkeypatch.setattr(extractor, '_call_gemini', fake_call)
    result = extract_document(b'%PDF-1.4', 'application/pdf', 'salary_ledger', 'key')

    assert calls == [(b'%PDF-1.4', 'application/pdf', 'key', 'gemini-2.0-flash')]
    assert result.parse_error is False
    assert result.raw_text == LEDGER_REPLY
    assert result.fields.base_salary == 210000


def test_extract_document_with_garbage_reply(monkeypatch):
    monkeypatch.setattr(extractor, '_call_gemini', lambda *args: 'すみません、読めません')
    result = extract_document(b'img', 'image/png', 'form_3', 'key')
    assert result.parse_error is True
    assert result.raw_data == {}
    assert result.fields == Form3Fields()


def test_extract_document_uses_the_genai_client(monkeypatch):
    seen = {}

    class FakeModels:
        def generate_content(self, model, contents):
            seen['model'] = model
            seen['contents'] = contents
            return type('Response', (), {'text': '{"company_name": "株式会社サンプル"}'})()

    class FakeClient:
        def __init__(self, api_key):
            seen['api_key'] = api_key
            self.models = FakeModels()

    monkeypatch.setattr(extractor.genai, 'Client', FakeClient)
    result = extract_document(b'img', 'image/png', 'form_3', 'key-123', model='gemini-test')

    assert seen['api_key'] == 'key-123'
    assert seen['model'] == 'gemini-test'
    assert seen['contents'][1] == get_prompt('form_3')
    assert result.fields.company_name == '株式会社サンプル'


def test_missing_key_or_file_raises():
    with pytest.raises(OcrError):
        extract_document(b'img', 'image/png', 'form_3', '')
    with pytest.raises(OcrError):
        extract_document(b'', 'image/png', 'form_3', 'key')


def test_upstream_failure_is_wrapped(monkeypatch):
    def failing(*args):
        raise ConnectionError('network down')

    monkeypatch.setattr(extractor, '_call_gemini', failing)
    with pytest.raises(OcrError, match='network down'):
        extract_document(b'img', 'image/png', 'form_3', 'key')
