"""
どこで: `terra.engine`。
何を: 幾何変換（core/geo）、表示範囲制御（reveal）、GPU 転送（render）のサブパッケージ群。
なぜ: 計算と描画の責務を分離し、コアを描画エンジン無しで単体テスト可能に保つため。
"""
