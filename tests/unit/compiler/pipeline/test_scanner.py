import pytest

from promptdoc.types import UnresolvedPolicy
from promptdoc.compiler.pipeline import scanner
from promptdoc.compiler.exceptions import PromptSyntaxError, DanglingContinuationError

ANNOTATIONS = {
    "Name": "Bunny",
    "Obj": '{ "x": 1 }',
}


def _scan(source, annotations=None, **kwargs):
    values = ANNOTATIONS if annotations is None else annotations
    return scanner.scan(source, values.get, **kwargs)


def _sections(source, annotations=None, **kwargs):
    return _scan(source, annotations, **kwargs).sections


class TestScannerSections:
    """
    Pipeline Scanner: ラベルと継続行によるセクション分割
    Target: src/promptdoc/compiler/pipeline/scanner.py
    """

    def test_tc_scanner_001_basic_sections(self):
        """TC-SCANNER-001: ラベル行ごとにセクションが切り出され、出現順が保たれること"""
        source = (
            "system:\n"
            "    You are helpful.\n"
            "user:\n"
            "    Hi\n"
        )
        assert _sections(source) == [("system", "You are helpful."), ("user", "Hi")]

    def test_tc_scanner_002_multiline_body(self):
        """TC-SCANNER-002: 継続行は改行で連結され、インデントは除去されること"""
        source = "system:\n    line one\n    line two\n"
        assert _sections(source) == [("system", "line one\nline two")]

        # タブ1文字でも継続行とみなす
        assert _sections("system:\n\tTabbed\n") == [("system", "Tabbed")]

        # 継続行の先頭の空白は幅に関わらず全て除去される
        assert _sections("system:\n    a\n      b\n") == [("system", "a\nb")]

    def test_tc_scanner_003_blank_lines(self):
        """TC-SCANNER-003: セクション内の空行は保持し、末尾の空行は捨てること"""
        assert _sections("system:\n    a\n\n    b\n") == [("system", "a\n\nb")]

        source = "system:\n    a\n\n\nuser:\n    b\n\n"
        assert _sections(source) == [("system", "a"), ("user", "b")]

        # インデント幅に満たない空白のみの行も空行として扱う
        assert _sections("system:\n    a\n  \n    b\n") == [("system", "a\n\nb")]

    def test_tc_scanner_004_empty_body(self):
        """TC-SCANNER-004: 本文の無いラベルは空文字列のメッセージになること"""
        source = "system:\nuser:\n    hi\n"
        assert _sections(source) == [("system", ""), ("user", "hi")]

    def test_tc_scanner_005_inline_body(self):
        """TC-SCANNER-005: ラベルと同じ行の本文は先頭のスペースを除いて本文になること"""
        source = "user: Hello there\n    and more\n"
        assert _sections(source) == [("user", "Hello there\nand more")]

    def test_tc_scanner_006_empty_document(self):
        """TC-SCANNER-006: 空の文書はメッセージを生成しないこと"""
        assert _sections("") == []
        assert _sections("\n\n") == []

    def test_tc_scanner_007_repeated_roles(self):
        """TC-SCANNER-007: 同じロールが複数回現れても統合しないこと"""
        source = "user:\n    a\nassistant:\n    b\nuser:\n    c\n"
        assert _sections(source) == [("user", "a"), ("assistant", "b"), ("user", "c")]

    def test_tc_scanner_008_custom_indent_width(self):
        """TC-SCANNER-008: インデント幅を変更できること"""
        assert _sections("system:\n  two\n", indent_width=2) == [("system", "two")]
        with pytest.raises(PromptSyntaxError):
            _sections("system:\n  two\n")


class TestScannerErrors:
    """
    Pipeline Scanner: 構文エラーの検出と位置情報
    """

    def test_tc_scanner_101_dangling_continuation(self):
        """TC-SCANNER-101: ラベルより前の継続行は DanglingContinuationError"""
        with pytest.raises(DanglingContinuationError) as exc:
            _sections("    orphan\n")

        assert exc.value.line == 1
        assert exc.value.column == 1
        assert exc.value.snippet == "    orphan"
        assert exc.value.stage == "Scanner"

    def test_tc_scanner_102_continuation_after_constant(self):
        """TC-SCANNER-102: 定数行はセクションを閉じるため、直後の継続行はエラー"""
        source = "system:\n    hi\nx = 1\n    orphan\n"
        with pytest.raises(DanglingContinuationError) as exc:
            _sections(source)
        assert exc.value.line == 4

    def test_tc_scanner_103_missing_delimiter(self):
        """TC-SCANNER-103: 識別子の後に ':' も '=' も無い行"""
        with pytest.raises(PromptSyntaxError) as exc:
            _sections("system\n    body\n")

        assert not isinstance(exc.value, DanglingContinuationError)
        assert "after identifier 'system'" in exc.value.message
        assert exc.value.line == 1
        assert exc.value.column == 7

    def test_tc_scanner_104_space_before_colon(self):
        """TC-SCANNER-104: コロンの前の空白は許容しない"""
        with pytest.raises(PromptSyntaxError) as exc:
            _sections("system :\n    body\n")
        assert "found ' '" in exc.value.message

    def test_tc_scanner_105_missing_identifier(self):
        """TC-SCANNER-105: 識別子の無い行"""
        with pytest.raises(PromptSyntaxError) as exc:
            _sections("system:\n    ok\n: nothing\n")

        assert "Expected a label or constant identifier" in exc.value.message
        assert exc.value.line == 3
        assert exc.value.column == 1

    def test_tc_scanner_106_short_indent(self):
        """TC-SCANNER-106: インデント幅に満たない本文行は新しいラベル行として解釈される"""
        with pytest.raises(PromptSyntaxError) as exc:
            _sections("system:\n  two spaces\n")
        assert exc.value.line == 2

    def test_tc_scanner_107_unterminated_string(self):
        """TC-SCANNER-107: 閉じられていない文字列リテラル"""
        with pytest.raises(PromptSyntaxError, match="Unterminated string literal"):
            _sections('system:\n    {"open\n')

    def test_tc_scanner_108_error_message_format(self):
        """TC-SCANNER-108: 文字列表現にステージと位置が含まれること"""
        with pytest.raises(PromptSyntaxError) as exc:
            _sections("system:\n    ok\nbroken line\n")

        text = str(exc.value)
        assert text.startswith("[Scanner]")
        assert "(line 3, column 7)" in text
        assert "'broken line'" in text


class TestScannerAnnotations:
    """
    Pipeline Scanner: アノテーション解決とエスケープ
    """

    def test_tc_scanner_201_resolve(self):
        """TC-SCANNER-201: @id は値に置換され、識別子外の文字で終わること"""
        assert _sections("system:\n    Hello @Name!\n") == [("system", "Hello Bunny!")]
        # 入力の終端で終わる識別子
        assert _sections("system:\n    Hi @Name") == [("system", "Hi Bunny")]
        # ラベル行の本文でも解決される
        assert _sections("user: @Name") == [("user", "Bunny")]

    def test_tc_scanner_202_unresolved_policy(self):
        """TC-SCANNER-202: 未解決の @id は既定では空文字列、KEEP では原文のまま"""
        source = "system:\n    Hello @Missing.\n"
        assert _sections(source) == [("system", "Hello .")]
        assert _sections(source, unresolved=UnresolvedPolicy.KEEP) == [
            ("system", "Hello @Missing.")
        ]

    def test_tc_scanner_203_bare_marker(self):
        """TC-SCANNER-203: 識別子を伴わない '@' はそのまま出力されること"""
        assert _sections("user:\n    mail me @ home\n") == [("user", "mail me @ home")]

    def test_tc_scanner_204_value_not_rescanned(self):
        """TC-SCANNER-204: 置換後の値は再走査もミニファイもされないこと"""
        assert _sections("system:\n    [@Obj]\n") == [("system", '[{ "x": 1 }]')]

        nested = {"Outer": "@Name"}
        assert _sections("system:\n    @Outer\n", nested) == [("system", "@Name")]

    def test_tc_scanner_205_escape(self):
        """TC-SCANNER-205: エスケープはバックスラッシュを捨てて次の1文字を出力すること"""
        source = "user:\n    \\@Name and \\{ not literal {  }\n"
        assert _sections(source) == [("user", "@Name and { not literal {}")]

    def test_tc_scanner_206_escaped_bracket_keeps_prose(self):
        """TC-SCANNER-206: エスケープされたブラケットは深度に影響しないこと"""
        assert _sections("user:\n    \\[ a   b\n") == [("user", "[ a   b")]

    def test_tc_scanner_210_trailing_backslash(self):
        """TC-SCANNER-210: 入力末尾のバックスラッシュは改行を生まず、そのまま出力されること"""
        assert _sections("user:\n    end\\") == [("user", "end\\")]
        assert _sections("user:\n    {\"a\": 1}\\") == [("user", '{"a":1}\\')]

    def test_tc_scanner_207_annotation_in_string_and_comment(self):
        """TC-SCANNER-207: 文字列とコメントの中でもアノテーションが解決されること"""
        source = (
            "system:\n"
            '    {"name": "@Name" // by @Name\n'
            "    }\n"
        )
        assert _sections(source) == [("system", '{"name":"Bunny" // by Bunny\n}')]

    def test_tc_scanner_208_escape_in_string(self):
        """TC-SCANNER-208: 文字列内のエスケープ"""
        assert _sections('system:\n    {"a": "\\@Name"}\n') == [("system", '{"a":"@Name"}')]
        # エスケープされた引用符は文字列を閉じない
        assert _sections('system:\n    {"a": "x\\" y"}\n') == [("system", '{"a":"x" y"}')]

    def test_tc_scanner_209_lookup_called_per_reference(self):
        """TC-SCANNER-209: lookup は参照ごとに呼ばれ、識別子がそのまま渡されること"""
        calls = []

        def lookup(identifier):
            calls.append(identifier)
            return identifier.upper()

        result = scanner.scan("system:\n    @a-b and @c_d\n", lookup)
        assert result.sections == [("system", "A-B and C_D")]
        assert calls == ["a-b", "c_d"]


class TestScannerLiterals:
    """
    Pipeline Scanner: 構造リテラルのミニファイ
    """

    def test_tc_scanner_301_minify_single_line(self):
        """TC-SCANNER-301: リテラル内の空白は除去され、ブラケットは残ること"""
        source = 'system:\n    {"a": 1, "b": [1, 2]}\n'
        assert _sections(source) == [("system", '{"a":1,"b":[1,2]}')]

    def test_tc_scanner_302_minify_multi_line(self):
        """TC-SCANNER-302: 複数行にわたるリテラルは改行とインデントも除去されること"""
        source = (
            "system:\n"
            "    {\n"
            '        "a": 1,\n'
            '        "b": 2\n'
            "    }\n"
        )
        assert _sections(source) == [("system", '{"a":1,"b":2}')]

    def test_tc_scanner_303_strings_are_verbatim(self):
        """TC-SCANNER-303: 文字列内の空白・改行は保持されること"""
        source = 'system:\n    {"text": "  keep   this  "}\n'
        assert _sections(source) == [("system", '{"text":"  keep   this  "}')]

        multi = 'system:\n    {"t": "line1\n        line2"}\n'
        assert _sections(multi) == [("system", '{"t":"line1\n        line2"}')]

    def test_tc_scanner_304_prose_whitespace_preserved(self):
        """TC-SCANNER-304: リテラル外の空白は変更しないこと"""
        assert _sections("system:\n    a    b\t c\n") == [("system", "a    b\t c")]

    def test_tc_scanner_305_worked_example(self):
        """TC-SCANNER-305: 散文・アノテーション・リテラル・コメントを含む文書"""
        source = (
            "system:\n"
            "    Say hello to @Name.\n"
            "    [\n"
            '        {"greeting": "hi", "note": // comment\n'
            '            "ok"}\n'
            "    ]\n"
        )
        expected = 'Say hello to Bunny.\n[{"greeting":"hi","note": // comment\n"ok"}]'
        assert _sections(source) == [("system", expected)]

    def test_tc_scanner_306_negative_depth(self):
        """TC-SCANNER-306: 対応の取れない閉じブラケットはエラーにしないこと"""
        source = "system:\n    ] a  b {  x }\n"
        assert _sections(source) == [("system", "] a  b {  x }")]

    def test_tc_scanner_307_depth_resets_per_section(self):
        """TC-SCANNER-307: 閉じられていないリテラルは次のセクションに持ち越さないこと"""
        source = "system:\n    { a\nuser:\n    x   y\n"
        assert _sections(source) == [("system", "{a"), ("user", "x   y")]

    def test_tc_scanner_308_idempotent(self):
        """TC-SCANNER-308: ミニファイ済みの出力を再度処理しても変化しないこと"""
        source = 'system:\n    {"a": [1, 2], "s": "x  y"}\n'
        first = _sections(source)[0][1]
        second = _sections("system:\n    " + first + "\n")[0][1]
        assert second == first

    def test_tc_scanner_309_blank_line_inside_literal(self):
        """TC-SCANNER-309: リテラル内の空行は出力に現れないこと"""
        source = "system:\n    {\n\n        \"a\": 1\n    }\n"
        assert _sections(source) == [("system", '{"a":1}')]


class TestScannerConstants:
    """
    Pipeline Scanner: 定数行
    """

    def test_tc_scanner_401_constants(self):
        """TC-SCANNER-401: 定数は副チャネルに記録され、メッセージにはならないこと"""
        source = (
            "model = gpt-4 // comment\n"
            "temperature   = 0.2\n"
            "system:\n"
            "    hi\n"
        )
        result = _scan(source)
        assert result.sections == [("system", "hi")]
        assert result.constants == {"model": "gpt-4", "temperature": "0.2"}

    def test_tc_scanner_402_constant_closes_section(self):
        """TC-SCANNER-402: 定数行は直前のセクションを閉じること"""
        source = "system:\n    a\nmode=fast\nuser:\n    b\n"
        result = _scan(source)
        assert result.sections == [("system", "a"), ("user", "b")]
        assert result.constants == {"mode": "fast"}

    def test_tc_scanner_403_constant_value_is_raw(self):
        """TC-SCANNER-403: 定数値ではアノテーションを解決しないこと"""
        result = _scan("who = @Name\n")
        assert result.constants == {"who": "@Name"}

    def test_tc_scanner_404_last_definition_wins(self):
        """TC-SCANNER-404: 同名の定数は後勝ち"""
        result = _scan("x = 1\nx = 2\n")
        assert result.constants == {"x": "2"}
