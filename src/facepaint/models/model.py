# model.py
# AnimeGANv2 generator used by all four face filters

from __future__ import annotations

import torch
from torch import nn
import torch.nn.functional as F


class ConvNormLReLU(nn.Sequential):
    """
    Padding, convolution, group normalization and leaky ReLU.

    Parameters
    ----------
    in_ch : int
        Input channels
    out_ch : int
        Output channels
    kernel_size : int, default=3
        Convolution kernel size
    stride : int, default=1
        Convolution stride
    padding : int or tuple, default=1
        Explicit padding applied before the convolution
    pad_mode : str, default="reflect"
        One of "zero", "same" (replicate) or "reflect"
    groups : int, default=1
        Convolution groups (``groups == in_ch`` for depthwise)
    bias : bool, default=False
        Whether the convolution has a bias term
    """

    def __init__(
        self,
        in_ch,
        out_ch,
        kernel_size=3,
        stride=1,
        padding=1,
        pad_mode="reflect",
        groups=1,
        bias=False,
    ):
        pad_layer = {
            "zero": nn.ZeroPad2d,
            "same": nn.ReplicationPad2d,
            "reflect": nn.ReflectionPad2d,
        }
        if pad_mode not in pad_layer:
            raise ValueError(f"Unknown pad_mode: {pad_mode}")

        super().__init__(
            pad_layer[pad_mode](padding),
            nn.Conv2d(
                in_ch,
                out_ch,
                kernel_size=kernel_size,
                stride=stride,
                padding=0,
                groups=groups,
                bias=bias,
            ),
            nn.GroupNorm(num_groups=1, num_channels=out_ch, affine=True),
            nn.LeakyReLU(0.2, inplace=True),
        )


class InvertedResBlock(nn.Module):
    """
    MobileNetV2-style inverted residual block.

    Expands channels with a pointwise conv, applies a depthwise conv, then
    projects back. Adds a skip connection when input and output widths match.
    """

    def __init__(self, in_ch, out_ch, expansion_ratio=2):
        super().__init__()
        self.use_res_connect = in_ch == out_ch
        bottleneck = int(round(in_ch * expansion_ratio))
        layers = []
        if expansion_ratio != 1:
            layers.append(ConvNormLReLU(in_ch, bottleneck, kernel_size=1, padding=0))

        # depthwise
        layers.append(ConvNormLReLU(bottleneck, bottleneck, groups=bottleneck, bias=True))
        # pointwise projection
        layers.append(nn.Conv2d(bottleneck, out_ch, kernel_size=1, padding=0, bias=False))
        layers.append(nn.GroupNorm(num_groups=1, num_channels=out_ch, affine=True))

        self.layers = nn.Sequential(*layers)

    def forward(self, x):
        out = self.layers(x)
        if self.use_res_connect:
            out = x + out
        return out


class Generator(nn.Module):
    """
    AnimeGANv2 image-to-image generator.

    The network downsamples twice, runs a stack of inverted residual blocks,
    and upsamples back with bilinear interpolation to the exact input size.
    All four bundled filters (FacePaint v1/v2, Paprika, CelebA distill) share
    this architecture and differ only in their weights.

    Input and output are ``(N, 3, H, W)`` tensors in the ``[-1, 1]`` range.

    Examples
    --------
    >>> import torch
    >>> from facepaint.models import Generator
    >>> g = Generator().eval()
    >>> with torch.inference_mode():
    ...     y = g(torch.zeros(1, 3, 64, 64))
    >>> y.shape
    torch.Size([1, 3, 64, 64])

    See Also
    --------
    facepaint.models.model_util.load_pretrained_model : Builds and loads weights
    """

    def __init__(self):
        super().__init__()

        self.block_a = nn.Sequential(
            ConvNormLReLU(3, 32, kernel_size=7, padding=3),
            ConvNormLReLU(32, 64, stride=2, padding=(0, 1, 0, 1)),
            ConvNormLReLU(64, 64),
        )

        self.block_b = nn.Sequential(
            ConvNormLReLU(64, 128, stride=2, padding=(0, 1, 0, 1)),
            ConvNormLReLU(128, 128),
        )

        self.block_c = nn.Sequential(
            ConvNormLReLU(128, 128),
            InvertedResBlock(128, 256, 2),
            InvertedResBlock(256, 256, 2),
            InvertedResBlock(256, 256, 2),
            InvertedResBlock(256, 256, 2),
            ConvNormLReLU(256, 128),
        )

        self.block_d = nn.Sequential(
            ConvNormLReLU(128, 128),
            ConvNormLReLU(128, 128),
        )

        self.block_e = nn.Sequential(
            ConvNormLReLU(128, 64),
            ConvNormLReLU(64, 64),
            ConvNormLReLU(64, 32, kernel_size=7, padding=3),
        )

        self.out_layer = nn.Sequential(
            nn.Conv2d(32, 3, kernel_size=1, stride=1, padding=0, bias=False),
            nn.Tanh(),
        )

    def forward(self, x: torch.Tensor, align_corners: bool = True) -> torch.Tensor:
        out = self.block_a(x)
        half_size = out.size()[-2:]
        out = self.block_b(out)
        out = self.block_c(out)

        if align_corners:
            out = F.interpolate(out, half_size, mode="bilinear", align_corners=True)
        else:
            out = F.interpolate(out, scale_factor=2, mode="bilinear", align_corners=False)
        out = self.block_d(out)

        if align_corners:
            out = F.interpolate(out, x.size()[-2:], mode="bilinear", align_corners=True)
        else:
            out = F.interpolate(out, scale_factor=2, mode="bilinear", align_corners=False)
        out = self.block_e(out)

        return self.out_layer(out)
