# ==============================================================================
# app/ocr/extractor.py
# ------------------------------------------------------------------------------
# AI-OCR through the Gemini API. Sends an uploaded document image or PDF with a
# per-document-type prompt and parses the JSON the model returns.
# ==============================================================================

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List

from google import genai
from google.genai import types

from .fields import parse_fields

BASE_PROMPT = "この書類から情報を抽出してください。日本語で回答してください。"

PROMPTS = {
    'salary_ledger': """これは賃金台帳です。以下の情報をJSON形式で抽出してください：
- employee_name: 従業員名
- period: 対象期間（年月）
- base_salary: 基本給
- fixed_allowances: 固定的手当（役職手当、資格手当など）の合計
- overtime_pay: 残業代（時間外手当、深夜手当、休日手当）
- commuting_allowance: 通勤手当
- total_payment: 総支給額
- work_days: 出勤日数
- scheduled_work_days: 所定労働日数

抽出できない項目はnullとしてください。""",
    'form_3': """これはキャリアアップ助成金の様式第3号（支給申請書）です。以下の情報をJSON形式で抽出してください：
- company_name: 事業所名称
- insurance_number: 雇用保険適用事業所番号
- representative_name: 代表者氏名
- worker_name: 対象労働者氏名
- conversion_date: 転換日
- pre_salary_total: 転換前賃金合計
- post_salary_total: 転換後賃金合計
- salary_increase_rate: 賃金上昇率
- application_amount: 申請金額

抽出できない項目はnullとしてください。""",
    'employment_contract': """これは雇用契約書または労働条件通知書です。以下の情報をJSON形式で抽出してください：
- employee_name: 従業員名
- employment_type: 雇用形態（正社員、契約社員、パート等）
- contract_start_date: 契約開始日
- contract_end_date: 契約終了日（期間の定めなしの場合は"indefinite"）
- base_salary: 基本給
- working_hours: 所定労働時間
- has_bonus: 賞与の有無（true/false）
- has_retirement_benefit: 退職金の有無（true/false）

抽出できない項目はnullとしてください。""",
}

DEFAULT_PROMPT = """この書類に記載されている主要な情報をJSON形式で抽出してください。
キーは英語、値は書類に記載されている通りの日本語で出力してください。"""

_FENCED_JSON = re.compile(r'```(?:json)?\s*([\s\S]*?)\s*```')


class OcrError(Exception):
    """Raised when the OCR service cannot be reached or returns nothing usable."""


@dataclass
class OcrResult:
    document_type: str
    raw_text: str
    raw_data: dict
    fields: object
    warnings: List[str] = field(default_factory=list)
    parse_error: bool = False


def get_prompt(document_type):
    return f"{BASE_PROMPT}\n{PROMPTS.get(document_type, DEFAULT_PROMPT)}"


def parse_extracted_data(text):
    """
    Pulls the JSON object out of the model's reply: a fenced ```json block if
    present, otherwise the outermost braces.

    Returns:
        tuple: (dict, bool) the data and whether parsing failed.
    """
    match = _FENCED_JSON.search(text or '')
    candidate = match.group(1) if match else None
    if candidate is None:
        start = (text or '').find('{')
        end = (text or '').rfind('}')
        if start == -1 or end <= start:
            return {}, True
        candidate = text[start:end + 1]
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        logging.warning("OCR reply contained malformed JSON.")
        return {}, True
    if not isinstance(data, dict):
        return {}, True
    return data, False


def _call_gemini(file_bytes, mime_type, prompt, api_key, model):
    """Sends the document to Gemini and returns the reply text."""
    client = genai.Client(api_key=api_key)
    response = client.models.generate_content(
        model=model,
        contents=[
            types.Part.from_bytes(data=file_bytes, mime_type=mime_type),
            prompt,
        ],
    )
    return response.text or ''


def extract_document(file_bytes, mime_type, document_type, api_key, model='gemini-2.0-flash'):
    """
    Runs OCR on one document.

    Args:
        file_bytes (bytes): The uploaded file.
        mime_type (str): e.g. 'image/png' or 'application/pdf'.
        document_type (str): 'salary_ledger', 'form_3', 'employment_contract' or 'other'.
        api_key (str): Gemini API key.
        model (str): Gemini model name.

    Returns:
        OcrResult

    Raises:
        OcrError: When no API key is configured or the service call fails.
    """
    if not api_key:
        raise OcrError("GEMINI_API_KEY が設定されていません")
    if not file_bytes:
        raise OcrError("ファイルが空です")

    logging.info(f"Sending {len(file_bytes)} bytes ({mime_type}) to OCR as '{document_type}'")
    try:
        text = _call_gemini(file_bytes, mime_type, get_prompt(document_type), api_key, model)
    except Exception as e:
        logging.error(f"OCR request failed: {e}", exc_info=True)
        raise OcrError(f"OCR処理中にエラーが発生しました: {e}") from e

    raw_data, parse_error = parse_extracted_data(text)
    parsed, warnings = parse_fields(document_type, raw_data)
    return OcrResult(
        document_type=document_type,
        raw_text=text,
        raw_data=raw_data,
        fields=parsed,
        warnings=warnings,
        parse_error=parse_error,
    )
