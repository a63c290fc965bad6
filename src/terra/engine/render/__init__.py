"""
どこで: `terra.engine.render` サブパッケージ。
何を: OverlayNode → GPU 転送・描画の入口。OverlayRenderer/OverlayMesh/Shader を提供。
なぜ: 計算（core/geo/reveal）と描画の責務を分離し、GPU リソース管理を局所化するため。
"""
