"""
recgen — ブラウザ操作のライブ記録と多言語コード生成

ブラウザ上のユーザー操作を正規化されたアクションログに変換し、
記録中も継続的に各言語（JavaScript / Playwright Test / Python 3種 / Java / C#）の
自動化コードとして再生成する。
"""

__version__ = "0.1.0"
