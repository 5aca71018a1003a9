"""
Built-in interchange node packs.

Definitions are written in the external node-definition schema and go
through the same conversion as user plugins.
"""

from __future__ import annotations

from typing import Any

SAMPLERS = [
    "euler", "euler_ancestral", "heun", "dpm_2", "dpm_2_ancestral", "lms",
    "dpm_fast", "dpm_adaptive", "dpmpp_2s_ancestral", "dpmpp_sde", "dpmpp_2m",
    "dpmpp_2m_sde", "ddim", "uni_pc",
]
SCHEDULERS = ["normal", "karras", "exponential", "sgm_uniform", "simple", "ddim_uniform"]
UPSCALE_METHODS = ["nearest-exact", "bilinear", "area", "bicubic", "lanczos"]


CORE_NODES: list[dict[str, Any]] = [
    # Loaders
    {
        "name": "CheckpointLoaderSimple",
        "display_name": "Load Checkpoint",
        "category": "loaders",
        "input": {"required": {
            "ckpt_name": [["v1-5-pruned.safetensors", "sd_xl_base_1.0.safetensors", "flux1-dev.safetensors"]],
        }},
        "output": ["MODEL", "CLIP", "VAE"],
        "output_name": ["MODEL", "CLIP", "VAE"],
        "description": "Load a Stable Diffusion checkpoint",
    },
    {
        "name": "VAELoader",
        "display_name": "Load VAE",
        "category": "loaders",
        "input": {"required": {
            "vae_name": [["vae-ft-mse-840000-ema-pruned.safetensors", "sdxl_vae.safetensors"]],
        }},
        "output": ["VAE"],
        "output_name": ["VAE"],
        "description": "Load a VAE model",
    },
    {
        "name": "LoraLoader",
        "display_name": "Load LoRA",
        "category": "loaders",
        "input": {"required": {
            "model": ["MODEL"],
            "clip": ["CLIP"],
            "lora_name": [["lora1.safetensors", "lora2.safetensors"]],
            "strength_model": ["FLOAT", {"default": 1.0, "min": -10.0, "max": 10.0, "step": 0.01}],
            "strength_clip": ["FLOAT", {"default": 1.0, "min": -10.0, "max": 10.0, "step": 0.01}],
        }},
        "output": ["MODEL", "CLIP"],
        "output_name": ["MODEL", "CLIP"],
        "description": "Apply a LoRA to a base model",
    },
    # Sampling
    {
        "name": "KSampler",
        "display_name": "KSampler",
        "category": "sampling",
        "input": {"required": {
            "model": ["MODEL"],
            "seed": ["INT", {"default": 0, "min": 0, "max": 0xFFFFFFFFFFFFFFFF}],
            "steps": ["INT", {"default": 20, "min": 1, "max": 10000}],
            "cfg": ["FLOAT", {"default": 7.0, "min": 0.0, "max": 100.0, "step": 0.1}],
            "sampler_name": [SAMPLERS],
            "scheduler": [SCHEDULERS],
            "positive": ["CONDITIONING"],
            "negative": ["CONDITIONING"],
            "latent_image": ["LATENT"],
            "denoise": ["FLOAT", {"default": 1.0, "min": 0.0, "max": 1.0, "step": 0.01}],
        }},
        "output": ["LATENT"],
        "output_name": ["LATENT"],
        "description": "Denoise a latent image",
    },
    # Conditioning
    {
        "name": "CLIPTextEncode",
        "display_name": "CLIP Text Encode",
        "category": "conditioning",
        "input": {"required": {
            "text": ["STRING", {"multiline": True, "default": ""}],
            "clip": ["CLIP"],
        }},
        "output": ["CONDITIONING"],
        "output_name": ["CONDITIONING"],
        "description": "Encode a text prompt into conditioning",
    },
    {
        "name": "ConditioningCombine",
        "display_name": "Conditioning (Combine)",
        "category": "conditioning",
        "input": {"required": {
            "conditioning_1": ["CONDITIONING"],
            "conditioning_2": ["CONDITIONING"],
        }},
        "output": ["CONDITIONING"],
        "output_name": ["CONDITIONING"],
        "description": "Combine two conditionings",
    },
    # Latent
    {
        "name": "EmptyLatentImage",
        "display_name": "Empty Latent Image",
        "category": "latent",
        "input": {"required": {
            "width": ["INT", {"default": 512, "min": 16, "max": 8192, "step": 8}],
            "height": ["INT", {"default": 512, "min": 16, "max": 8192, "step": 8}],
            "batch_size": ["INT", {"default": 1, "min": 1, "max": 64}],
        }},
        "output": ["LATENT"],
        "output_name": ["LATENT"],
        "description": "Create an empty latent image",
    },
    {
        "name": "LatentUpscale",
        "display_name": "Upscale Latent",
        "category": "latent",
        "input": {"required": {
            "samples": ["LATENT"],
            "upscale_method": [["nearest-exact", "bilinear", "area", "bicubic", "bislerp"]],
            "width": ["INT", {"default": 512, "min": 0, "max": 8192, "step": 8}],
            "height": ["INT", {"default": 512, "min": 0, "max": 8192, "step": 8}],
            "crop": [["disabled", "center"]],
        }},
        "output": ["LATENT"],
        "output_name": ["LATENT"],
        "description": "Resize a latent image",
    },
    # Image
    {
        "name": "VAEDecode",
        "display_name": "VAE Decode",
        "category": "image",
        "input": {"required": {"samples": ["LATENT"], "vae": ["VAE"]}},
        "output": ["IMAGE"],
        "output_name": ["IMAGE"],
        "description": "Decode a latent into pixels",
    },
    {
        "name": "VAEEncode",
        "display_name": "VAE Encode",
        "category": "image",
        "input": {"required": {"pixels": ["IMAGE"], "vae": ["VAE"]}},
        "output": ["LATENT"],
        "output_name": ["LATENT"],
        "description": "Encode pixels into a latent",
    },
    {
        "name": "LoadImage",
        "display_name": "Load Image",
        "category": "image",
        "input": {"required": {"image": [["image1.png", "image2.png"]]}},
        "output": ["IMAGE", "MASK"],
        "output_name": ["IMAGE", "MASK"],
        "description": "Load an image from disk",
    },
    {
        "name": "SaveImage",
        "display_name": "Save Image",
        "category": "image",
        "input": {"required": {
            "images": ["IMAGE"],
            "filename_prefix": ["STRING", {"default": "ComfyUI"}],
        }},
        "output": [],
        "description": "Save images to disk",
    },
    {
        "name": "PreviewImage",
        "display_name": "Preview Image",
        "category": "image",
        "input": {"required": {"images": ["IMAGE"]}},
        "output": [],
        "description": "Preview images",
    },
    {
        "name": "ImageScale",
        "display_name": "Upscale Image",
        "category": "image",
        "input": {"required": {
            "image": ["IMAGE"],
            "upscale_method": [UPSCALE_METHODS],
            "width": ["INT", {"default": 512, "min": 0, "max": 8192, "step": 1}],
            "height": ["INT", {"default": 512, "min": 0, "max": 8192, "step": 1}],
            "crop": [["disabled", "center"]],
        }},
        "output": ["IMAGE"],
        "output_name": ["IMAGE"],
        "description": "Resize an image",
    },
    # Mask
    {
        "name": "ImageToMask",
        "display_name": "Convert Image to Mask",
        "category": "mask",
        "input": {"required": {
            "image": ["IMAGE"],
            "channel": [["red", "green", "blue", "alpha"]],
        }},
        "output": ["MASK"],
        "output_name": ["MASK"],
        "description": "Extract one channel as a mask",
    },
]


CONTROLNET_NODES: list[dict[str, Any]] = [
    {
        "name": "ControlNetLoader",
        "display_name": "Load ControlNet Model",
        "category": "controlnet",
        "input": {"required": {
            "control_net_name": [[
                "control_v11p_sd15_canny.pth",
                "control_v11p_sd15_openpose.pth",
                "control_v11f1p_sd15_depth.pth",
            ]],
        }},
        "output": ["CONTROL_NET"],
        "output_name": ["CONTROL_NET"],
        "description": "Load a ControlNet model",
    },
    {
        "name": "ControlNetApply",
        "display_name": "Apply ControlNet",
        "category": "controlnet",
        "input": {"required": {
            "conditioning": ["CONDITIONING"],
            "control_net": ["CONTROL_NET"],
            "image": ["IMAGE"],
            "strength": ["FLOAT", {"default": 1.0, "min": 0.0, "max": 10.0, "step": 0.01}],
        }},
        "output": ["CONDITIONING"],
        "output_name": ["CONDITIONING"],
        "description": "Apply a ControlNet to conditioning",
    },
    {
        "name": "CannyEdgePreprocessor",
        "display_name": "Canny Edge",
        "category": "controlnet",
        "input": {"required": {
            "image": ["IMAGE"],
            "low_threshold": ["INT", {"default": 100, "min": 0, "max": 255}],
            "high_threshold": ["INT", {"default": 200, "min": 0, "max": 255}],
        }},
        "output": ["IMAGE"],
        "output_name": ["IMAGE"],
        "description": "Canny edge preprocessing",
    },
]


IPADAPTER_NODES: list[dict[str, Any]] = [
    {
        "name": "IPAdapterModelLoader",
        "display_name": "IPAdapter Model Loader",
        "category": "ipadapter",
        "input": {"required": {
            "ipadapter_file": [[
                "ip-adapter_sd15.safetensors",
                "ip-adapter-plus_sd15.safetensors",
                "ip-adapter_sdxl.safetensors",
            ]],
        }},
        "output": ["IPADAPTER"],
        "output_name": ["IPADAPTER"],
        "description": "Load an IP-Adapter model",
    },
    {
        "name": "IPAdapterApply",
        "display_name": "Apply IPAdapter",
        "category": "ipadapter",
        "input": {"required": {
            "model": ["MODEL"],
            "ipadapter": ["IPADAPTER"],
            "image": ["IMAGE"],
            "weight": ["FLOAT", {"default": 1.0, "min": -1.0, "max": 3.0, "step": 0.05}],
            "start_at": ["FLOAT", {"default": 0.0, "min": 0.0, "max": 1.0, "step": 0.01}],
            "end_at": ["FLOAT", {"default": 1.0, "min": 0.0, "max": 1.0, "step": 0.01}],
        }},
        "output": ["MODEL"],
        "output_name": ["MODEL"],
        "description": "Apply an IP-Adapter to a model",
    },
]


BUILTIN_PLUGINS: list[dict[str, Any]] = [
    {
        "id": "comfy-core",
        "name": "Core Nodes",
        "version": "1.0.0",
        "description": "Core interchange nodes",
        "author": "ComfyUI",
        "nodes": CORE_NODES,
    },
    {
        "id": "controlnet-preprocessors",
        "name": "ControlNet Preprocessors",
        "version": "1.0.0",
        "description": "ControlNet loaders and preprocessors",
        "author": "ComfyUI",
        "nodes": CONTROLNET_NODES,
    },
    {
        "id": "ipadapter",
        "name": "IP-Adapter",
        "version": "1.0.0",
        "description": "Image prompting and face consistency",
        "author": "cubiq",
        "nodes": IPADAPTER_NODES,
    },
]
