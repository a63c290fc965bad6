"""
どこで: `terra.engine.geo`。
何を: GeoJSON 文書の正規化 → リング単位の投影/セグメント化 → 共有バッファへの蓄積。
なぜ: 文書構造の解釈と球面幾何の生成を段階ごとに分け、各段を単体でテスト可能にするため。
"""
