"""Shared test fixtures."""

from pathlib import Path

import pytest

from lilscript.config import Config


@pytest.fixture
def test_config() -> Config:
    """Provide a default configuration."""
    return Config()


@pytest.fixture
def sample_tex() -> str:
    """Provide a complete sample script in LaTeX form."""
    return r"""
\documentclass{article}
\usepackage[utf8]{inputenc}
\usepackage{scriptformat} % custom macros

\renewcommand{\SceneName}{Rainy Night In}
\scriptAuthor{lilellia}
\scriptSeries{Cozy Evenings (Part 2)}
\scriptTags{[F4A] [Comfort] [Rain Sounds]}
\newcommand{\petname}{sweetheart}

\begin{document}
\maketitle
\summary{You come home soaked,
and someone is waiting with a towel.}
\character{Mira}{your partner, a little worried}
\clearpage

\section{Arrival}
\sfx{rain against the window}
\stagedir{The door opens.}
\spoken[Mira]{Oh! There you are\textellipsis{} you're \ul{soaked}.}
\spoken{Come here, \petname. \direct{softly} Let me help.}
\listener{I'm fine, really.}

% a comment line

\section*{By the Fire}
Mira: It's warm here, isn't it?
[fire crackles]
Just rest for a bit.
\end{document}
"""


@pytest.fixture
def sample_tex_file(tmp_path: Path, sample_tex: str) -> Path:
    """Write the sample script to a .tex file."""
    path = tmp_path / "rainy_night.tex"
    path.write_text(sample_tex, encoding="utf-8")
    return path


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
