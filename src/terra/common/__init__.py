"""
どこで: `terra.common`。
何を: 設定・環境変数・ロギング・例外・型エイリアスなど依存の少ない共通部品。
なぜ: engine/api の双方から参照される基盤を循環なく配置するため。
"""
