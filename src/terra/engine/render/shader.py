"""
どこで: `terra.engine.render` のシェーダ定義。
何を: 球面オーバーレイ線用の最小 GLSL（MVP 変換 + 単色 RGBA）を生成する。
なぜ: 描画側で必要なプログラムを 1 箇所で組み立て、Renderer から GLSL を切り離すため。
"""

from __future__ import annotations

from typing import Any


class Shader:
    VERTEX_SHADER = """
        #version 330 core
        in vec3 in_vert;
        uniform mat4 mvp;
        void main() {
            gl_Position = mvp * vec4(in_vert, 1.0);
        }
    """

    FRAGMENT_SHADER = """
        #version 330 core
        uniform vec4 color;
        out vec4 frag_color;
        void main() {
            frag_color = color;
        }
    """

    @staticmethod
    def create_shader(ctx: Any) -> Any:
        """ModernGL コンテキストからプログラムを生成する。"""
        return ctx.program(
            vertex_shader=Shader.VERTEX_SHADER,
            fragment_shader=Shader.FRAGMENT_SHADER,
        )
